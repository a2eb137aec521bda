"""Style document loading and building tests."""

from pathlib import Path

from cssforge.document import build_document, load_document, validate_document
from cssforge.manager import StyleManager
from cssforge.sink import MemorySink

DOCUMENT = """\
global:
  body:
    margin: 0
keyframes:
  fade:
    from: {opacity: 0}
    to: {opacity: 1}
styles:
  button:
    padding: 8
    "&:hover":
      opacity: 0.9
    "@media (max-width: 768px)":
      padding: 4
"""


class TestLoadDocument:
    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "styles.yaml"
        path.write_text(DOCUMENT)
        document = load_document(path)
        assert set(document) == {"global", "keyframes", "styles"}
        assert document["styles"]["button"]["&:hover"] == {"opacity": 0.9}

    def test_json_is_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "styles.json"
        path.write_text('{"styles": {"a": {"color": "red"}}}')
        assert load_document(path) == {"styles": {"a": {"color": "red"}}}

    def test_malformed(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("styles: [unclosed")
        assert load_document(path) == {}

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        assert load_document(path) == {}


class TestValidateDocument:
    def test_valid(self) -> None:
        assert validate_document({"styles": {"a": {"color": "red"}}}) == []

    def test_unknown_section(self) -> None:
        errors = validate_document({"themes": {}})
        assert any("themes" in e for e in errors)

    def test_section_not_mapping(self) -> None:
        errors = validate_document({"styles": ["a"]})
        assert any("styles" in e for e in errors)

    def test_entry_not_mapping(self) -> None:
        errors = validate_document({"keyframes": {"fade": "opacity"}})
        assert any("keyframes.fade" in e for e in errors)


class TestBuildDocument:
    def setup_method(self) -> None:
        self.sink = MemorySink()
        self.manager = StyleManager(sink=self.sink)

    def test_build(self, tmp_path: Path) -> None:
        path = tmp_path / "styles.yaml"
        path.write_text(DOCUMENT)
        result = build_document(load_document(path), self.manager)
        assert result.ok
        assert result.global_applied
        assert result.styles == {"button": "css-button"}
        assert result.keyframes == {"fade": "anim-fade"}
        assert self.sink.rules == [
            "body {\n  margin: 0px;\n}",
            "@keyframes anim-fade {\n  from {\n    opacity: 0;\n  }\n  to {\n    opacity: 1;\n  }\n}",
            ".css-button {\n  padding: 8px;\n}",
            ".css-button:hover {\n  opacity: 0.9;\n}",
            "@media (max-width: 768px) {\n.css-button {\n  padding: 4px;\n}\n}",
        ]

    def test_invalid_document_not_built(self) -> None:
        result = build_document({"styles": ["a"]}, self.manager)
        assert not result.ok
        assert len(self.sink) == 0

    def test_sentinel_name_reported(self) -> None:
        result = build_document(
            {"styles": {"error": {"color": "red"}, "ok": {"color": "blue"}}}, self.manager
        )
        assert not result.ok
        assert result.errors == ["styles.error could not be compiled"]
        assert result.styles["ok"] == "css-ok"

    def test_failed_keyframes_reported(self) -> None:
        result = build_document({"keyframes": {"fade": {"0%": {}}}}, self.manager)
        assert result.errors == ["keyframes.fade could not be compiled"]

    def test_failed_global(self) -> None:
        result = build_document({"global": {"body": "nope"}}, self.manager)
        assert not result.ok
        assert not result.global_applied

    def test_post_processor_applied(self) -> None:
        manager = StyleManager({"post_processor": lambda t: t.upper()}, sink=self.sink)
        result = build_document({"styles": {"a": {"color": "red"}}}, manager)
        assert result.styles == {"a": "css-a"}
        assert self.sink.rules == [".CSS-A {\n  COLOR: RED;\n}"]
