"""Unit tests for the PlantUML compiler.

Tests cover:
- Component tokens per context (directory, layered, plain, import-only)
- Layer blocks and layer ordering
- Connector length, glyph and dropped edges
- Direction heuristic and full document assembly
"""

import pytest

from archloom.core.config import OutputSpec
from archloom.core.diagrams.models import (
    NO_LAYER,
    Component,
    Context,
    NamedLayer,
    OutputDirection,
)
from archloom.core.diagrams.structural import (
    all_components,
    build_layers,
    compile_diagram,
    compile_layer,
    connection_length,
    connection_sign,
    render_component,
    render_relationships,
    render_skin,
    resolve_direction,
)


# ── Fixtures ──────────────────────────────────────────────────────────────


def _make_component(filename, name=None, layer=None, imported=False, imports=()):
    return Component(
        name=name or filename,
        filename=filename,
        layer=NamedLayer(layer) if layer else NO_LAYER,
        is_imported=imported,
        imports=set(imports),
    )


# ── Tests: Component Rendering ───────────────────────────────────────────


class TestRenderComponent:
    """Tests for render_component token selection."""

    def test_primary_file_declaration_is_bold(self):
        comp = _make_component("src/app.ts", name="app")
        assert render_component(comp, Context.LAYER) == 'rectangle "<b>app</b>" as app'

    def test_imported_file_declaration_is_plain(self):
        comp = _make_component("src/app.ts", name="app", imported=True)
        assert render_component(comp, Context.LAYER) == 'rectangle "app" as app'

    def test_relationship_uses_safe_identifier(self):
        comp = _make_component("src/my-app.ts", name="my-app.ts")
        assert render_component(comp, Context.RELATIONSHIP) == "my_app_ts"

    def test_declaration_alias_matches_relationship_identifier(self):
        comp = _make_component("a/b c.ts", name="b c.ts")
        declaration = render_component(comp, Context.LAYER)
        assert declaration.endswith(" as " + render_component(comp, Context.RELATIONSHIP))

    def test_non_ascii_characters_are_replaced(self):
        comp = _make_component("src/café.ts", name="café")
        assert render_component(comp, Context.RELATIONSHIP) == "caf_"

    @pytest.mark.parametrize("context", [Context.LAYER, Context.RELATIONSHIP])
    def test_directory_is_grouped_token(self, context):
        comp = _make_component("src/vendor/**", name="vendor", layer="core", imported=True)
        assert render_component(comp, context) == "[vendor]"

    @pytest.mark.parametrize("context", [Context.LAYER, Context.RELATIONSHIP])
    def test_layered_file_is_abstract_token(self, context):
        comp = _make_component("src/store.ts", name="store", layer="core")
        assert render_component(comp, context) == "(store)"

    def test_layered_file_has_no_emphasis(self):
        comp = _make_component("x.ts", name="x", layer="core")
        assert "<b>" not in render_component(comp, Context.LAYER)

    def test_emphasis_depends_on_import_flag(self):
        primary = _make_component("x.ts", name="x")
        imported = _make_component("y.ts", name="y", imported=True)

        assert "<b>" in render_component(primary, Context.LAYER)
        assert "<b>" not in render_component(imported, Context.LAYER)


# ── Tests: Layers ────────────────────────────────────────────────────────


class TestLayers:
    """Tests for build_layers, all_components and compile_layer."""

    def test_groups_in_first_seen_order(self):
        a = _make_component("a.ts", layer="ui")
        b = _make_component("b.ts")
        c = _make_component("c.ts", layer="core")
        d = _make_component("d.ts", layer="ui")

        layers = build_layers([a, b, c, d])

        assert list(layers) == [NamedLayer("ui"), NO_LAYER, NamedLayer("core")]
        assert layers[NamedLayer("ui")] == [a, d]

    def test_explicit_order_comes_first(self):
        a = _make_component("a.ts", layer="ui")
        c = _make_component("c.ts", layer="core")

        layers = build_layers([a, c], order=["core", "missing"])

        assert list(layers) == [NamedLayer("core"), NamedLayer("ui")]

    def test_all_components_unique(self):
        a = _make_component("a.ts")
        layers = {NO_LAYER: [a, a]}

        assert len(all_components(layers)) == 2
        assert all_components(layers, unique=True) == [a]

    def test_empty_layer_renders_nothing(self):
        assert compile_layer(NamedLayer("ui"), []) == ""

    def test_named_layer_wraps_in_package(self):
        comp = _make_component("a.ts", name="a", layer="ui")
        assert compile_layer(NamedLayer("ui"), [comp]) == '\npackage "ui" {\n  (a)\n}'

    def test_no_layer_is_unwrapped(self):
        a = _make_component("a.ts", name="a")
        b = _make_component("b.ts", name="b", imported=True)

        text = compile_layer(NO_LAYER, [a, b])

        assert text == '\nrectangle "<b>a</b>" as a\nrectangle "b" as b'


# ── Tests: Connections ───────────────────────────────────────────────────


class TestConnections:
    """Tests for connector length and glyph."""

    def test_same_directory_length_one(self):
        a = _make_component("a/b.ts")
        b = _make_component("a/c.ts")
        assert connection_length(a, b) == 1

    def test_deeper_target_is_longer(self):
        a = _make_component("a/b.ts")
        b = _make_component("a/d/e.ts")
        assert connection_length(a, b) == 2

    def test_length_capped_at_four(self):
        a = _make_component("a/b/c/d.ts")
        b = _make_component("w/x/y/z/e.ts")
        assert connection_length(a, b) == 4

    def test_imported_source_minimum_two(self):
        a = _make_component("a/b.ts", imported=True)
        b = _make_component("a/c.ts")
        assert connection_length(a, b) == 2

    @pytest.mark.parametrize(
        "source,target",
        [
            ("a.ts", "a.ts"),
            ("a/b.ts", "a/c.ts"),
            ("a/b.ts", "x/y/z/q/r/s.ts"),
            ("deep/er/path/f.ts", "g.ts"),
            ("src/**", "lib/**"),
        ],
    )
    @pytest.mark.parametrize("imported", [False, True])
    def test_length_always_clamped(self, source, target, imported):
        a = _make_component(source, imported=imported)
        b = _make_component(target)
        length = connection_length(a, b)

        assert 1 <= length <= 4
        if imported:
            assert length >= 2

    def test_primary_source_is_solid(self):
        a = _make_component("a.ts", layer="ui")
        b = _make_component("b.ts", layer="ui")
        assert connection_sign(a, b) == "="

    def test_imported_same_layer_is_dotted(self):
        a = _make_component("a.ts", layer="ui", imported=True)
        b = _make_component("b.ts", layer="ui")
        assert connection_sign(a, b) == "."

    def test_imported_cross_layer_is_dashed(self):
        a = _make_component("a.ts", layer="ui", imported=True)
        b = _make_component("b.ts", layer="core")
        assert connection_sign(a, b) == "-"

    def test_imported_both_ungrouped_is_dashed(self):
        a = _make_component("a.ts", imported=True)
        b = _make_component("b.ts")
        assert connection_sign(a, b) == "-"

    def test_relationship_line(self):
        a = _make_component("a/b.ts", imports=["a/c.ts"])
        c = _make_component("a/c.ts")

        text = render_relationships(build_layers([a, c]))

        assert text == "\na_b_ts => a_c_ts"

    def test_sibling_primary_files_single_glyph_connector(self):
        """Length 1 renders one glyph before the arrow head."""
        b = _make_component("a/b.ts", imports=["a/c.ts"])
        c = _make_component("a/c.ts")

        lines = render_relationships(build_layers([b, c])).splitlines()

        assert connection_length(b, c) == 1
        assert connection_sign(b, c) == "="
        assert lines == ["", "a_b_ts => a_c_ts"]

    def test_unknown_import_is_dropped(self):
        a = _make_component("a/b.ts", imports=["node_modules/x.js", "a/c.ts"])
        c = _make_component("a/c.ts")

        lines = render_relationships(build_layers([a, c])).strip().splitlines()

        assert lines == ["a_b_ts => a_c_ts"]

    def test_imported_cross_layer_connector(self):
        a = _make_component("src/a.ts", name="a", layer="ui", imported=True,
                            imports=["src/lib/b.ts"])
        b = _make_component("src/lib/b.ts", name="b", layer="core")

        text = render_relationships(build_layers([a, b]))

        assert text == "\n(a) --> (b)"


# ── Tests: Skin & Document ───────────────────────────────────────────────


class TestDiagram:
    """Tests for direction inference and compile_diagram."""

    def _components(self, count):
        return [_make_component(f"f{i}.ts", name=f"f{i}") for i in range(count)]

    def test_twenty_one_components_horizontal(self):
        layers = build_layers(self._components(21))
        assert resolve_direction(OutputSpec(), layers) is OutputDirection.HORIZONTAL

    def test_twenty_components_vertical(self):
        layers = build_layers(self._components(20))
        assert resolve_direction(OutputSpec(), layers) is OutputDirection.VERTICAL

    def test_explicit_direction_wins(self):
        layers = build_layers(self._components(30))
        output = OutputSpec(direction="vertical")
        assert resolve_direction(output, layers) is OutputDirection.VERTICAL

    def test_skin_contains_direction_and_params(self):
        skin = render_skin(OutputSpec(direction="horizontal"), {})

        assert "scale max 1920 width" in skin
        assert "left to right direction" in skin
        assert "skinparam monochrome true" in skin

    def test_document_markers(self):
        text = compile_diagram(OutputSpec(), self._components(2))

        assert text.startswith("@startuml\n")
        assert text.endswith("\n\n@enduml")

    def test_no_layers_means_no_package(self):
        comps = self._components(3)
        comps[0].imports = {"f1.ts"}

        text = compile_diagram(OutputSpec(), comps)

        assert 'package "' not in text
        assert "\n  rectangle" not in text

    def test_layers_in_order(self):
        a = _make_component("a.ts", name="a", layer="ui")
        b = _make_component("b.ts", name="b", layer="core")

        text = compile_diagram(OutputSpec(layers=["core", "ui"]), [a, b])

        assert text.index('package "core"') < text.index('package "ui"')

    def test_layer_order_with_absent_layer(self):
        a = _make_component("a.ts", name="a", layer="ui")
        b = _make_component("b.ts", name="b")

        text = compile_diagram(OutputSpec(layers=["missing", "ui"]), [b, a])

        assert 'package "missing"' not in text
        assert text.index('package "ui"') < text.index('rectangle "<b>b</b>" as b')

    def test_example_diagram(self):
        b = _make_component("a/b.ts", imports=["a/c.ts"])
        c = _make_component("a/c.ts")

        text = compile_diagram(OutputSpec(), [b, c])

        assert 'rectangle "<b>a/b.ts</b>" as a_b_ts' in text
        assert 'rectangle "<b>a/c.ts</b>" as a_c_ts' in text
        assert "a_b_ts => a_c_ts" in text
        assert "top to bottom direction" in text
