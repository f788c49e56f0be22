from phototale.commands import DEFAULT_TABLE, PhoneticTable


def test_default_table_covers_command_vocabulary():
    for key in ("photo", "capture", "snap", "home", "back", "next", "skip", "auto",
                "reset", "retry", "check", "enable", "disable", "generate", "confirm",
                "upload", "start", "middle", "end"):
        assert key in DEFAULT_TABLE.keys


def test_lookup_is_symmetric():
    assert DEFAULT_TABLE.are_confusable("photo", "foto")
    assert DEFAULT_TABLE.are_confusable("foto", "photo")
    assert DEFAULT_TABLE.are_confusable("end", "and")
    assert DEFAULT_TABLE.are_confusable("and", "end")


def test_members_of_same_class_are_confusable():
    assert DEFAULT_TABLE.are_confusable("shot", "those")


def test_word_in_two_classes_links_to_both():
    assert DEFAULT_TABLE.are_confusable("re set", "reset")
    assert DEFAULT_TABLE.are_confusable("re set", "raised")
    assert not DEFAULT_TABLE.are_confusable("reset", "raised")


def test_unrelated_words_are_not_confusable():
    assert not DEFAULT_TABLE.are_confusable("photo", "back")
    assert not DEFAULT_TABLE.are_confusable("dragon", "wagon")
    assert DEFAULT_TABLE.are_confusable("dragon", "Dragon ")


def test_custom_table_is_normalised():
    table = PhoneticTable({"Weiter": ["Weida", " weiter "]})
    assert len(table) == 1
    assert "weida" in table
    assert table.class_of("WEITER") == frozenset({"weiter", "weida"})
    assert table.members_of("weida") == frozenset({"weiter", "weida"})
    assert table.members_of("zurück") == frozenset()
