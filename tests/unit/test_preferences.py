"""Unit tests for platform preference parsing."""

from app.services.preference_service import PlatformPreference


class TestPlatformPreference:
    """Tests for PlatformPreference constructors."""

    def test_from_ids_keeps_order(self):
        assert PlatformPreference.from_ids(["b", "a", "c"]).platform_ids == ("b", "a", "c")

    def test_from_ids_drops_blanks_and_repeats(self):
        preference = PlatformPreference.from_ids([" b", "", "a", "b", "  "])
        assert preference.platform_ids == ("b", "a")

    def test_from_csv(self):
        assert PlatformPreference.from_csv("b,a,c").platform_ids == ("b", "a", "c")  # type: ignore[union-attr]

    def test_from_csv_blank_is_none(self):
        assert PlatformPreference.from_csv(None) is None
        assert PlatformPreference.from_csv("  ") is None

    def test_is_empty(self):
        assert PlatformPreference().is_empty
        assert PlatformPreference.from_ids([",", " "]).is_empty
        assert not PlatformPreference.from_ids(["weibo"]).is_empty
