from ui import I18N, disclaimers


def test_every_language_has_the_same_keys() -> None:
    assert set(I18N["bm"]) == set(I18N["en"])


def test_regenerate_messages_are_translated() -> None:
    for language in ("en", "bm"):
        assert I18N[language]["regenerated"]
        assert "boom" in I18N[language]["regenerate_failed"].format(error="boom")
    assert I18N["bm"]["regenerated"] != I18N["en"]["regenerated"]


def test_disclaimers_follow_language() -> None:
    assert disclaimers("bm") == [I18N["bm"]["disclaimer_general"], I18N["bm"]["disclaimer_fees"]]
