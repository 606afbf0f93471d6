"""Unit tests for profile loader."""

import pytest
import yaml

from booklet_solver.config.profile_loader import (
    ProcessingProfile,
    get_default_profile,
    get_profiles_dir,
    list_available_profiles,
    load_profile,
)
from booklet_solver.config.profile_manager import get_profile, reset_profile, set_profile


@pytest.fixture
def profiles_dir(tmp_path, monkeypatch):
    """Point profile lookup at a temporary directory."""
    monkeypatch.setenv("BOOKLET_PROFILES_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture(autouse=True)
def _reset_active_profile(monkeypatch):
    monkeypatch.delenv("BOOKLET_PROFILE", raising=False)
    reset_profile()
    yield
    reset_profile()


class TestProcessingProfile:
    """Test ProcessingProfile dataclass."""

    def test_defaults(self):
        profile = ProcessingProfile(name="test")

        assert profile.page_threshold == 5
        assert profile.page_delay_ms == 3000
        assert profile.rate_limit_backoff_ms == 10000
        assert profile.render_scale == 2.0
        assert profile.retry_rate_limited_pages is False
        assert profile.detail_level == "detailed"

    def test_from_dict_ignores_unknown_keys(self):
        profile = ProcessingProfile.from_dict({"name": "x", "page_threshold": 2, "colour": "red"})

        assert profile.name == "x"
        assert profile.page_threshold == 2

    def test_from_dict_default_name(self):
        assert ProcessingProfile.from_dict({}).name == "default"

    def test_detail_level_normalized(self):
        assert ProcessingProfile(name="x", detail_level="SHORT").detail_level == "short"

    @pytest.mark.parametrize("field,value", [
        ("page_threshold", -1),
        ("page_delay_ms", -5),
        ("rate_limit_backoff_ms", -5),
        ("render_scale", 0),
        ("max_rate_limit_retries", -1),
        ("detail_level", "verbose"),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValueError):
            ProcessingProfile(name="bad", **{field: value})

    def test_to_dict(self):
        data = ProcessingProfile(name="x", page_delay_ms=0).to_dict()

        assert data["name"] == "x"
        assert data["page_delay_ms"] == 0
        assert ProcessingProfile.from_dict(data) == ProcessingProfile(name="x", page_delay_ms=0)


class TestLoadProfile:
    """Test loading profiles from YAML."""

    def test_bundled_profiles(self, monkeypatch):
        monkeypatch.delenv("BOOKLET_PROFILES_DIR", raising=False)

        assert get_profiles_dir().name == "profiles"
        assert list_available_profiles() == ["careful", "default"]

        careful = load_profile("careful")
        assert careful.page_threshold == 0
        assert careful.retry_rate_limited_pages is True

    def test_load_custom_profile(self, profiles_dir):
        (profiles_dir / "fast.yaml").write_text(
            yaml.safe_dump({"name": "fast", "page_delay_ms": 500, "detail_level": "short"}),
            encoding="utf-8",
        )

        profile = load_profile("fast")

        assert profile.page_delay_ms == 500
        assert profile.detail_level == "short"

    def test_missing_profile(self, profiles_dir):
        with pytest.raises(FileNotFoundError, match="nope"):
            load_profile("nope")

    def test_empty_profile(self, profiles_dir):
        (profiles_dir / "empty.yaml").write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="empty"):
            load_profile("empty")

    def test_invalid_yaml(self, profiles_dir):
        (profiles_dir / "broken.yaml").write_text("name: [unclosed", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_profile("broken")

    def test_not_a_mapping(self, profiles_dir):
        (profiles_dir / "list.yaml").write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_profile("list")

    def test_invalid_value(self, profiles_dir):
        (profiles_dir / "neg.yaml").write_text("name: neg\npage_delay_ms: -1\n", encoding="utf-8")
        with pytest.raises(ValueError, match="neg"):
            load_profile("neg")

    def test_list_falls_back_to_default(self, profiles_dir):
        assert list_available_profiles() == ["default"]

    def test_default_profile_always_available(self, profiles_dir):
        profile = get_default_profile()
        assert profile.name == "default"
        assert profile.page_threshold == 5


class TestProfileManager:
    """Test the active profile."""

    def test_get_profile_defaults(self, monkeypatch):
        monkeypatch.delenv("BOOKLET_PROFILES_DIR", raising=False)
        assert get_profile().name == "default"

    def test_set_profile(self, monkeypatch):
        monkeypatch.delenv("BOOKLET_PROFILES_DIR", raising=False)
        set_profile("careful")
        assert get_profile().name == "careful"

        reset_profile()
        assert get_profile().name == "default"

    def test_profile_from_env(self, monkeypatch):
        monkeypatch.delenv("BOOKLET_PROFILES_DIR", raising=False)
        monkeypatch.setenv("BOOKLET_PROFILE", "careful")
        assert get_profile().page_delay_ms == 5000

    def test_set_missing_profile(self, profiles_dir):
        with pytest.raises(FileNotFoundError):
            set_profile("missing")
