"""Tests for config loading and the default pattern set."""

import pytest
import yaml

from oled_router.bus_mux import LoggingMultiplexer
from oled_router.config import DEFAULT_CONFIG, build_registry, build_router, load_yaml
from oled_router.outcome import ConfigError, DispatchOutcome
from oled_router.targets import AddressingMode

EFFECT_ADDRESSES = [
    "/scanner_vibrato", "/tape_delay_1", "/tape_delay_2", "/freeverb",
    "/d/w_scn_exp", "/scanner_exp", "/rate_exp", "/depth_exp",
    "/d/w_del_exp", "/delay_exp", "/deltime_exp", "/feedback_exp",
    "/d/w_del_2_exp", "/delay_2_exp", "/ramptime_exp", "/rolloff_exp",
    "/d/w_rev_exp", "/reverb_exp", "/revtime_exp", "/damping_exp",
]


@pytest.fixture
def cfg():
    return load_yaml(None, DEFAULT_CONFIG)


def with_displays(cfg, displays, **extra):
    cfg = dict(cfg)
    cfg["displays"] = displays
    cfg.update(extra)
    return cfg


class TestLoadYaml:

    def test_file_wins_over_default(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("osc: {rx_port: 9000}\n", encoding="utf-8")
        assert load_yaml(str(path), DEFAULT_CONFIG) == {"osc": {"rx_port": 9000}}

    def test_missing_file_falls_back(self, tmp_path):
        cfg = load_yaml(str(tmp_path / "absent.yml"), DEFAULT_CONFIG)
        assert cfg["osc"]["rx_port"] == 7562

    def test_nothing(self):
        assert load_yaml(None) == {}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        assert load_yaml(str(path)) == {}


class TestDefaultConfig:

    def test_defaults(self, cfg):
        registry = build_registry(cfg)
        assert registry.count == 1
        assert registry.mode is AddressingMode.SINGLE
        assert not registry.has_muxing

    def test_every_effect_screen_has_four_ints(self, cfg):
        router = build_router(cfg, build_registry(cfg))
        for address in EFFECT_ADDRESSES:
            entry = router.patterns.get(address)
            assert entry is not None, address
            assert entry.arg_kinds == ("int", "int", "int", "int")

    @pytest.mark.parametrize("address,args", [
        ("/scanner_vibrato", [1, 2, 3, 4]),
        ("/rolloff_exp", [1.0, 2.0, 3.0, 4.0]),
        ("/looper", [80]),
        ("/desel_oled", []),
        ("/osc-test", []),
        ("/number", [1.5]),
        ("/display-text", ["hi"]),
        ("/parameters", [0.1, 0.5, 1.0]),
        ("/waveform", [0.0, 0.25, 0.5, 1.0]),
    ])
    def test_default_patterns_draw(self, cfg, address, args):
        registry = build_registry(cfg)
        router = build_router(cfg, registry)
        assert router.dispatch(address, args) is DispatchOutcome.OK
        surface = registry.current_target().surface
        assert surface.frame_count == 1
        assert surface.lit_pixels() > 0

    def test_default_patterns_reject_wrong_arity(self, cfg):
        router = build_router(cfg, build_registry(cfg))
        assert router.dispatch("/freeverb", [1, 2, 3]) is DispatchOutcome.WRONG_ARGUMENTS
        assert router.dispatch("/osc-test", [1]) is DispatchOutcome.WRONG_ARGUMENTS
        assert router.dispatch("/display-text", [1]) is DispatchOutcome.WRONG_ARGUMENTS

    def test_legacy_state_addresses(self, cfg):
        cfg = with_displays(cfg, [{}, {}])
        registry = build_registry(cfg)
        router = build_router(cfg, registry)
        assert router.dispatch("/targetMode", [2]) is DispatchOutcome.OK
        assert router.dispatch("/target", [1]) is DispatchOutcome.OK
        assert registry.active_index == 1

    def test_exp_variant_shows_label_not_value(self, cfg):
        router = build_router(cfg, build_registry(cfg))
        texts = [a.text for a in router.patterns.get("/rate_exp").actions if a.kind == "text"]
        assert "exp" in texts
        values = [a.arg for a in router.patterns.get("/rate_exp").actions if a.kind == "value"]
        assert values == [0, 1, 3]


class TestBuildRegistry:

    def test_display_sizes(self, cfg):
        registry = build_registry(with_displays(cfg, [{"width": 128, "height": 32}, {}]))
        small, default = [t.surface for t in registry]
        assert (small.width, small.height) == (128, 32)
        assert (default.width, default.height) == (128, 64)

    def test_no_displays(self, cfg):
        with pytest.raises(ConfigError):
            build_registry(with_displays(cfg, []))

    def test_muxed_display_without_mux(self, cfg):
        with pytest.raises(ConfigError, match="requires mux"):
            build_registry(with_displays(cfg, [{"mux": 2}]))

    def test_mux_channel_out_of_range(self, cfg):
        with pytest.raises(ConfigError):
            build_registry(with_displays(cfg, [{"mux": 8}], mux={"enabled": True}))

    def test_mux_enabled_from_config(self, cfg):
        registry = build_registry(with_displays(cfg, [{"mux": 0}, {"mux": 5}], mux={"enabled": True}))
        assert registry.has_muxing
        assert [t.mux_channel for t in registry] == [0, 5]

    def test_explicit_mux(self, cfg):
        mux = LoggingMultiplexer()
        registry = build_registry(with_displays(cfg, [{"mux": 0}, {"mux": 1}]), mux=mux)
        registry.select_target(1)
        registry.select_target(0)
        assert mux.history == [1, 0]

    @pytest.mark.parametrize("mode,expected", [
        ("stateful", AddressingMode.STATEFUL),
        (1, AddressingMode.PER_MESSAGE),
    ])
    def test_mode(self, cfg, mode, expected):
        cfg = dict(cfg, routing={"mode": mode})
        assert build_registry(cfg).mode is expected

    def test_bad_mode(self, cfg):
        with pytest.raises(ConfigError):
            build_registry(dict(cfg, routing={"mode": "each"}))

    def test_bad_pattern_is_config_error(self, cfg):
        registry = build_registry(cfg)
        broken = yaml.safe_load("patterns: [{address: /x, args: [blob]}]")
        with pytest.raises(ConfigError):
            build_router(broken, registry)
