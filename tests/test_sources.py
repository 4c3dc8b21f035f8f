"""Tests for the YAML source registry and loader."""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
import yaml
from yaml.reader import ReaderError

from harvey.sources.loader import (
    DuplicateKeyError,
    MetadataError,
    from_file,
    from_resource,
    from_slide,
    parse_document,
)
from harvey.sources.registry import (
    DiskFile,
    Resource,
    SlideSource,
    SourceRegistry,
    default_registry,
)

FIXTURES = Path(__file__).parent / "fixtures"


# ── Registry ─────────────────────────────────────────────────────────


class TestRegistry:
    def test_handles_follow_insertion_order(self, registry):
        assert registry.register(Resource("a")) == 0
        assert registry.register(Resource("b")) == 1
        assert registry.register(Resource("a")) == 2
        assert len(registry) == 3

    def test_get(self, registry):
        handle = registry.register(DiskFile(Path("deck.yaml")))
        assert registry.get(handle) == DiskFile(Path("deck.yaml"))

    def test_get_unknown_handle(self, registry):
        with pytest.raises(KeyError):
            registry.get(0)
        registry.register(Resource("a"))
        with pytest.raises(KeyError):
            registry.get(-1)

    def test_iteration(self, registry):
        registry.register(Resource("a"))
        registry.register(Resource("b"))
        assert list(registry) == [(0, Resource("a")), (1, Resource("b"))]

    def test_concurrent_registration(self, registry):
        def register_many(worker):
            return [
                (registry.register(Resource(f"w{worker}-{i}")), f"w{worker}-{i}")
                for i in range(200)
            ]

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = [pair for batch in pool.map(register_many, range(8)) for pair in batch]

        handles = [h for h, _ in results]
        assert sorted(handles) == list(range(1600))
        for handle, name in results:
            assert registry.get(handle) == Resource(name)

    def test_concurrent_slide_parses(self, registry):
        from harvey.formats.slides import parse_slides

        text = "---\na: 1\n\n---\nb: 2\n\n"

        def parse(n):
            return [s.source_handle for s in parse_slides(f"deck{n}.md", text, registry)]

        with ThreadPoolExecutor(max_workers=4) as pool:
            batches = list(pool.map(parse, range(10)))

        handles = [h for batch in batches for h in batch]
        assert sorted(handles) == list(range(20))
        for n, batch in enumerate(batches):
            assert [registry.get(h).slide_file for h in batch] == [Path(f"deck{n}.md")] * 2

    def test_default_registry_is_shared(self):
        assert default_registry() is default_registry()

    def test_describe(self, registry):
        disk = registry.register(DiskFile(Path("deck.yaml")))
        res = registry.register(Resource("default-meta.yaml"))
        slide = registry.register(SlideSource(Path("talk.md"), 2, 9))
        assert registry.describe(disk) == "deck.yaml"
        assert registry.describe(res) == "<builtin:default-meta.yaml>"
        assert registry.describe(slide) == "talk.md slide 2 (metadata closed at line 10)"
        assert registry.describe(99) == "<unknown source #99>"

    def test_describe_mark(self, registry):
        doc = parse_document(Resource("r.yaml"), "a:\n  b: 1\n", registry)
        inner_value = doc.node.value[0][1].value[0][1]
        assert registry.describe_mark(inner_value.start_mark) == (
            "<builtin:r.yaml>: line 2, column 6"
        )


# ── Loader ───────────────────────────────────────────────────────────


class TestParseDocument:
    def test_mapping(self, registry):
        doc = parse_document(Resource("r"), "title: Hi\ntags: [a, b]\n", registry)
        assert doc.value == {"title": "Hi", "tags": ["a", "b"]}
        assert doc.handle == 0
        assert isinstance(doc.node, yaml.MappingNode)

    def test_empty_document(self, registry):
        doc = parse_document(Resource("r"), "", registry)
        assert doc.value is None
        assert doc.node is None
        assert len(registry) == 1

    def test_scalar_document(self, registry):
        assert parse_document(Resource("r"), "42\n", registry).value == 42

    def test_uses_default_registry(self):
        before = len(default_registry())
        doc = parse_document(Resource("r"), "a: 1\n")
        assert doc.handle >= before
        assert default_registry().get(doc.handle) == Resource("r")

    def test_syntax_error(self, registry):
        with pytest.raises(MetadataError) as exc_info:
            parse_document(Resource("broken.yaml"), "a: [1, 2\n", registry)
        err = exc_info.value
        assert err.handle == 0
        assert isinstance(err.cause, yaml.YAMLError)
        assert err.line is not None
        assert str(err).startswith("<builtin:broken.yaml>: line ")
        # Failed parses are still logged
        assert registry.get(0) == Resource("broken.yaml")

    def test_multiple_documents_rejected(self, registry):
        with pytest.raises(MetadataError):
            parse_document(Resource("r"), "a: 1\n---\nb: 2\n", registry)

    def test_unsafe_tags_rejected(self, registry):
        with pytest.raises(MetadataError):
            parse_document(Resource("r"), "a: !!python/object/apply:os.system ['true']\n", registry)

    def test_duplicate_key(self, registry):
        with pytest.raises(MetadataError) as exc_info:
            parse_document(Resource("r"), "a: 1\nb: 2\na: 3\n", registry)
        err = exc_info.value
        assert isinstance(err.cause, DuplicateKeyError)
        assert err.line == 3
        assert "duplicate key 'a'" in str(err)

    @pytest.mark.parametrize("text", [
        "1: a\n0x1: b\n",
        "yes: a\ntrue: b\n",
        "1: a\n1.0: b\n",
        "~: a\nnull: b\n",
    ])
    def test_equal_keys_spelled_differently(self, registry, text):
        with pytest.raises(MetadataError) as exc_info:
            parse_document(Resource("r"), text, registry)
        err = exc_info.value
        assert isinstance(err.cause, DuplicateKeyError)
        assert err.line == 2

    def test_merge_key_may_be_overridden(self, registry):
        text = "base: &b {x: 1, y: 1}\nother:\n  <<: *b\n  x: 2\n"
        doc = parse_document(Resource("r"), text, registry)
        assert doc.value["other"] == {"x": 2, "y": 1}

    def test_unprintable_character_names_source(self, registry):
        with pytest.raises(MetadataError) as exc_info:
            parse_document(Resource("r"), "a: \x07\n", registry)
        err = exc_info.value
        assert isinstance(err.cause, ReaderError)
        assert err.cause.name == err.handle == 0
        assert err.line is None
        assert str(err).startswith("<builtin:r>: ")

    def test_nested_duplicate_key(self, registry):
        with pytest.raises(MetadataError) as exc_info:
            parse_document(Resource("r"), "outer:\n  - {k: 1, k: 2}\n", registry)
        assert exc_info.value.line == 2

    def test_same_text_different_type_keys(self, registry):
        doc = parse_document(Resource("r"), "1: int\n'1': str\n", registry)
        assert doc.value == {1: "int", "1": "str"}

    def test_merge_keys_allowed(self, registry):
        text = "base: &b {x: 1}\nother:\n  <<: *b\n  y: 2\n"
        doc = parse_document(Resource("r"), text, registry)
        assert doc.value["other"] == {"x": 1, "y": 2}

    def test_recursive_alias(self, registry):
        doc = parse_document(Resource("r"), "a: &a [*a]\n", registry)
        assert doc.value["a"][0] is doc.value["a"]


class TestLoaderEntryPoints:
    def test_from_file(self, registry):
        data = from_file(FIXTURES / "deck.yaml", registry)
        assert data["slides"] == ["intro.md", "deep-dive.md"]
        assert registry.get(0) == DiskFile(FIXTURES / "deck.yaml")

    def test_from_file_missing(self, registry):
        with pytest.raises(FileNotFoundError):
            from_file("/nonexistent/deck.yaml", registry)
        assert len(registry) == 0

    def test_from_resource(self, registry):
        assert from_resource("builtin.yaml", "a: 1\n", registry) == {"a": 1}
        assert registry.get(0) == Resource("builtin.yaml")

    def test_from_slide(self, registry):
        assert from_slide(Path("talk.md"), 3, 14, "a: 1\n", registry) == {"a": 1}
        assert registry.get(0) == SlideSource(Path("talk.md"), 3, 14)
