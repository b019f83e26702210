import pytest

from questline.leveling import (
    DEFAULT_BASE_XP,
    DEFAULT_XP_MULTIPLIER,
    InvalidArgument,
    LevelingConfig,
    LevelingEngine,
)


def test_defaults():
    cfg = LevelingConfig()
    assert cfg.base_xp == DEFAULT_BASE_XP == 300
    assert cfg.xp_multiplier == DEFAULT_XP_MULTIPLIER == 1.5
    assert cfg.to_dict() == {"base_xp": 300, "xp_multiplier": 1.5}


@pytest.mark.parametrize(
    "base_xp, multiplier",
    [
        (0, 1.5),
        (-10, 1.5),
        (300, 1),
        (300, 0.9),
        (300, float("inf")),
        (float("nan"), 1.5),
        ("300", 1.5),
        (True, 1.5),
        # Too flat: neighbouring costs could round to the same value
        (1, 1.5),
        (10, 1.05),
    ],
)
def test_misconfigured_curve_rejected_at_construction(base_xp, multiplier):
    with pytest.raises(InvalidArgument):
        LevelingConfig(base_xp=base_xp, xp_multiplier=multiplier)


def test_config_is_immutable():
    cfg = LevelingConfig()
    with pytest.raises(AttributeError):
        cfg.base_xp = 1  # type: ignore[misc]


def test_from_mapping_parses_strings():
    cfg = LevelingConfig.from_mapping({"LEVELING_BASE_XP": "100", "LEVELING_XP_MULTIPLIER": "1.25"})
    assert cfg.base_xp == 100
    assert cfg.xp_multiplier == 1.25


def test_from_mapping_missing_or_blank_uses_defaults():
    assert LevelingConfig.from_mapping({}) == LevelingConfig()
    assert LevelingConfig.from_mapping({"LEVELING_BASE_XP": None, "LEVELING_XP_MULTIPLIER": ""}) == LevelingConfig()


def test_from_mapping_rejects_garbage():
    with pytest.raises(InvalidArgument, match="LEVELING_BASE_XP"):
        LevelingConfig.from_mapping({"LEVELING_BASE_XP": "lots"})
    with pytest.raises(InvalidArgument):
        LevelingConfig.from_mapping({"LEVELING_XP_MULTIPLIER": "0.5"})


def test_engine_uses_custom_curve():
    engine = LevelingEngine(LevelingConfig(base_xp=100, xp_multiplier=2))
    assert [engine.xp_required_for_level(n) for n in (1, 2, 3)] == [100, 200, 400]
    assert engine.total_xp_for_level(4) == 700
    assert engine.level_from_xp(699) == 3
    assert engine.level_from_xp(700) == 4


def test_decimal_multiplier_is_taken_literally():
    # 1.1 means 11/10 here, so 100 * 1.1**2 is exactly 121
    engine = LevelingEngine(LevelingConfig(base_xp=100, xp_multiplier=1.1))
    assert engine.xp_required_for_level(3) == 121
    assert engine.xp_required_for_level(6) == 161  # 161.051
