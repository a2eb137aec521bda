"""Module-level API tests."""

import re

import cssforge
from cssforge.api import (
    COMPOSE_ERROR_ID,
    FACTORY_ERROR_ID,
    clear_cache,
    compose,
    configure,
    css,
    css_variables,
    default_manager,
    destroy,
    get_cache_info,
    get_config,
    get_stats,
    has_keyframes,
    has_style,
    inject_global,
    keyframes,
    reset_default_manager,
    style_factory,
)
from cssforge.manager import INVALID_STYLE_ID, StyleManager
from cssforge.sink import MemorySink


class TestCss:
    def setup_method(self) -> None:
        self.sink = MemorySink()
        reset_default_manager(StyleManager(sink=self.sink))

    def teardown_method(self) -> None:
        destroy()

    def test_static_style(self) -> None:
        button = css({"color": "red"})
        assert button() == button()
        assert len(self.sink) == 1

    def test_style_function(self) -> None:
        colored = css(lambda color: {"color": color})
        assert colored("red") == colored("red")
        assert colored("red") != colored("blue")

    def test_style_function_same_output_same_identifier(self) -> None:
        one = css(lambda size: {"padding": size})
        two = css(lambda size: {"padding": size})
        assert one(4) == two(4)

    def test_style_function_without_params(self) -> None:
        assert css(lambda color: {"color": color})() == INVALID_STYLE_ID

    def test_style_function_returning_non_mapping(self) -> None:
        assert css(lambda color: color)("red") == INVALID_STYLE_ID

    def test_options(self) -> None:
        assert css({"color": "red"}, {"name": "title"})() == "css-title"

    def test_end_to_end(self) -> None:
        configure({"identifier_prefix": "t"})
        identifier = css({"color": "blue"})()
        assert re.fullmatch(r"t-[a-z][a-z0-9]{7}", identifier)
        assert has_style({"color": "blue"})
        clear_cache()
        assert not has_style({"color": "blue"})


class TestHelpers:
    def setup_method(self) -> None:
        self.sink = MemorySink()
        reset_default_manager(StyleManager(sink=self.sink))

    def teardown_method(self) -> None:
        destroy()

    def test_keyframes(self) -> None:
        stops = {"from": {"opacity": 0}, "to": {"opacity": 1}}
        name = keyframes(stops)
        assert name.startswith("anim-")
        assert has_keyframes(stops)
        assert keyframes(stops, name="fade") == "anim-fade"
        assert has_keyframes(stops, name="fade")

    def test_inject_global(self) -> None:
        assert inject_global({"body": {"margin": 0}}) is True
        assert "body {\n  margin: 0px;\n}" in self.sink.rules

    def test_compose_merges_left_to_right(self) -> None:
        merged = compose({"color": "red", "padding": 2}, None, False, {"padding": 4})
        assert merged == css({"color": "red", "padding": 4})()

    def test_compose_nothing(self) -> None:
        assert compose() == ""
        assert compose(None, {}) == ""

    def test_compose_error(self) -> None:
        assert compose({"color": "red"}, ["not", "a", "mapping"]) == COMPOSE_ERROR_ID

    def test_style_factory(self) -> None:
        sized = style_factory(lambda size: {"fontSize": size})
        assert sized(12) == sized(12)
        assert sized(12) != sized(14)

    def test_style_factory_error(self) -> None:
        def broken(size):
            raise ValueError("bad size")

        assert style_factory(broken)(12) == FACTORY_ERROR_ID

    def test_css_variables(self) -> None:
        assert css_variables({"primary": "#333", "--gap": 4}) == {
            "--primary": "#333",
            "--gap": "4",
        }

    def test_stats_and_info(self) -> None:
        css({"color": "red"})()
        assert get_stats().total_styles == 1
        assert get_cache_info().styles == 1

    def test_get_config(self) -> None:
        assert get_config()["identifier_prefix"] == "css"


class TestDefaultManager:
    def teardown_method(self) -> None:
        destroy()

    def test_lazily_created(self) -> None:
        destroy()
        manager = default_manager()
        assert default_manager() is manager

    def test_destroy_starts_fresh(self) -> None:
        first = default_manager()
        destroy()
        assert default_manager() is not first

    def test_reset_installs_manager(self) -> None:
        manager = StyleManager()
        assert reset_default_manager(manager) is manager
        assert default_manager() is manager

    def test_package_exports(self) -> None:
        assert cssforge.css is css
        assert cssforge.INVALID_STYLE_ID == "css-error"
        assert cssforge.__version__
