"""Tests for Publisher, configuration and the command line."""

import pytest
from pathlib import Path

from note_publisher.cli import main
from note_publisher.core.config import PublisherConfig, load_config
from note_publisher.core.models import ConfigError, NoteRef, PublishOptions
from note_publisher.core.publisher import Publisher, create_publisher_from_config
from note_publisher.core.render import CommandRenderer
from note_publisher.core.storage import VaultStorage


def write_files(root: Path, files: dict) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)


class TestPublisher:
    """Tests for Publisher.publish_note."""

    @pytest.fixture
    def vault(self, tmp_path):
        write_files(tmp_path, {
            "Projects/Plan & Budget.md": "Plan links [[Tasks]] and [[Team]]",
            "Projects/Tasks.md": "Tasks link [[Projects/Plan & Budget]]",
            "Team.md": "Team",
            "photo.png": b"\x89PNG\r\n\x1a\n",
        })
        return tmp_path

    @pytest.fixture
    def config(self):
        return PublisherConfig(target_folder_path="pub", base_url="https://notes.example.com")

    def _publisher(self, vault, config):
        return Publisher(VaultStorage(vault), config)

    def test_publish_with_links(self, vault, config):
        result = self._publisher(vault, config).publish_note(NoteRef("Projects/Plan & Budget.md"))

        assert result.published_files == {"Projects/Plan & Budget.md", "Projects/Tasks.md", "Team.md"}
        assert result.errors == []
        assert (vault / "pub" / "Projects" / "Plan & Budget.md").read_text() == "Plan links [[Tasks]] and [[Team]]"
        assert (vault / "pub" / "Team.md").read_text() == "Team"

    def test_url_from_source_path(self, vault, config):
        result = self._publisher(vault, config).publish_note(NoteRef("Projects/Plan & Budget.md"))
        assert result.url == "https://notes.example.com/Projects/Plan--and--Budget"

    def test_no_url_without_base_url(self, vault):
        config = PublisherConfig(target_folder_path="pub")
        result = self._publisher(vault, config).publish_note(NoteRef("Team.md"))
        assert result.url is None

    def test_publish_only_root(self, vault, config):
        result = self._publisher(vault, config).publish_note(
            NoteRef("Projects/Plan & Budget.md"), PublishOptions(include_linked=False)
        )

        assert result.published_files == {"Projects/Plan & Budget.md"}
        assert not (vault / "pub" / "Team.md").exists()

    def test_default_options_follow_config(self, vault):
        config = PublisherConfig(target_folder_path="pub", include_linked_notes=False)
        result = self._publisher(vault, config).publish_note(NoteRef("Projects/Plan & Budget.md"))
        assert result.published_files == {"Projects/Plan & Budget.md"}

    def test_flat_structure(self, vault):
        config = PublisherConfig(target_folder_path="pub", preserve_folder_structure=False)
        self._publisher(vault, config).publish_note(NoteRef("Projects/Tasks.md"))
        assert (vault / "pub" / "Tasks.md").exists()
        assert (vault / "pub" / "Plan & Budget.md").exists()

    def test_publish_prefix(self, vault):
        config = PublisherConfig(target_folder_path="pub", add_publish_prefix=True, publish_prefix="pub_")
        self._publisher(vault, config).publish_note(NoteRef("Team.md"))
        assert (vault / "pub" / "pub_Team.md").exists()

    def test_publish_twice_overwrites(self, vault, config):
        publisher = self._publisher(vault, config)
        first = publisher.publish_note(NoteRef("Projects/Plan & Budget.md"))
        second = publisher.publish_note(NoteRef("Projects/Plan & Budget.md"))

        assert len(first.published_files) == len(second.published_files)
        assert second.errors == []
        target = vault / "pub" / "Projects" / "Plan & Budget.md"
        assert target.read_text() == (vault / "Projects" / "Plan & Budget.md").read_text()
        assert sorted(p.name for p in (vault / "pub").iterdir()) == ["Projects", "Team.md"]

    def test_second_publish_picks_up_changes(self, vault, config):
        publisher = self._publisher(vault, config)
        publisher.publish_note(NoteRef("Team.md"))
        (vault / "Team.md").write_text("Team, updated")
        publisher.publish_note(NoteRef("Team.md"))
        assert (vault / "pub" / "Team.md").read_text() == "Team, updated"

    @pytest.mark.parametrize("target", ["pub", "site/out"])
    def test_republish_flat_reads_sources_not_copies(self, tmp_path, target):
        write_files(tmp_path, {"root.md": "[[C]]", "Deep/Dir/C.md": "v1"})
        config = PublisherConfig(target_folder_path=target, preserve_folder_structure=False)
        publisher = self._publisher(tmp_path, config)

        first = publisher.publish_note(NoteRef("root.md"))
        (tmp_path / "Deep" / "Dir" / "C.md").write_text("v2")
        second = publisher.publish_note(NoteRef("root.md"))

        assert first.published_files == {"root.md", "Deep/Dir/C.md"}
        assert second.published_files == first.published_files
        assert (tmp_path / target / "C.md").read_text() == "v2"

    def test_same_note_under_two_spellings_published_once(self, tmp_path, config):
        write_files(tmp_path, {
            "root.md": "[[A]] [[./A]] [[Notes/B]] [[Notes//B]]",
            "A.md": "a",
            "Notes/B.md": "b",
        })
        result = self._publisher(tmp_path, config).publish_note(NoteRef("root.md"))

        assert result.published_files == {"root.md", "A.md", "Notes/B.md"}
        assert result.errors == []
        assert sorted(p.name for p in (tmp_path / "pub").iterdir()) == ["A.md", "Notes", "root.md"]

    def test_negative_max_depth_rejected(self, vault, config):
        result = self._publisher(vault, config).publish_note(NoteRef("Team.md"), PublishOptions(max_depth=-1))

        assert result.errors == ["Invalid max depth: -1"]
        assert result.published_files == set()
        assert result.skipped_files == set()
        assert not (vault / "pub").exists()

    def test_no_note(self, vault, config):
        result = self._publisher(vault, config).publish_note(None)
        assert result.errors == ["No file provided"]
        assert result.published_files == set()

    def test_non_markdown(self, vault, config):
        result = self._publisher(vault, config).publish_note(NoteRef("photo.png"))
        assert result.errors == ["Can only publish markdown files"]
        assert not (vault / "pub").exists()

    def test_missing_target_folder(self, vault):
        config = PublisherConfig(target_folder_path="")
        result = self._publisher(vault, config).publish_note(NoteRef("Team.md"))
        assert result.errors == ["Please configure target folder path in settings"]

    def test_invalid_target_folder(self, vault):
        config = PublisherConfig(target_folder_path="../outside")
        result = self._publisher(vault, config).publish_note(NoteRef("Team.md"))
        assert result.errors == ["Invalid target folder path: ../outside"]
        assert not (vault.parent / "outside").exists()

    def test_copy_failure_in_single_mode(self, vault, config):
        result = self._publisher(vault, config).publish_note(
            NoteRef("Gone.md"), PublishOptions(include_linked=False)
        )
        assert result.published_files == set()
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Failed to copy Gone.md:")
        assert result.url is None

    def test_unexpected_error_is_caught(self, vault, config, monkeypatch):
        publisher = self._publisher(vault, config)

        def broken_walker(options):
            raise RuntimeError("boom")

        monkeypatch.setattr(publisher, "_walker", broken_walker)
        result = publisher.publish_note(NoteRef("Team.md"))

        assert result.errors == ["Error publishing note: boom"]
        assert result.published_files == set()

    def test_drawings_rendered_into_image_folder(self, vault, config):
        class StaticRenderer:
            def render(self, elements, files):
                return b"\x89PNG\r\n\x1a\n"

        write_files(vault, {
            "Team.md": "Org chart: ![[Org.excalidraw|chart]]",
            "Org.excalidraw": "{\"type\": \"excalidraw\", \"elements\": []}",
        })
        publisher = Publisher(VaultStorage(vault), config, renderer=StaticRenderer())
        result = publisher.publish_note(NoteRef("Team.md"))

        assert result.published_files == {"Team.md"}
        assert (vault / "pub" / "Team.md").read_text() == "Org chart: ![[Org.png|chart]]"
        assert result.created_images == ["pub/_Image/Org.png"]
        # The source note is untouched
        assert (vault / "Team.md").read_text() == "Org chart: ![[Org.excalidraw|chart]]"

    def test_created_images_cover_one_publish(self, vault, config):
        class StaticRenderer:
            def render(self, elements, files):
                return b"\x89PNG\r\n\x1a\n"

        write_files(vault, {
            "Team.md": "![[Org.excalidraw]]",
            "Org.excalidraw": "{\"elements\": []}",
        })
        publisher = Publisher(VaultStorage(vault), config, renderer=StaticRenderer())
        first = publisher.publish_note(NoteRef("Team.md"))
        second = publisher.publish_note(NoteRef("Team.md"))

        assert first.created_images == ["pub/_Image/Org.png"]
        assert second.created_images == ["pub/_Image/Org_1.png"]
        assert publisher.processor.created_images == ["pub/_Image/Org_1.png"]


class TestPublishingStats:
    """Tests for Publisher.get_publishing_stats."""

    @pytest.fixture
    def vault(self, tmp_path):
        write_files(tmp_path, {
            "root.md": "12345 [[A]] [[B]]",
            "A.md": "abc [[C]]",
            "B.md": "b",
            "C.md": "cc",
        })
        return tmp_path

    def test_stats_with_links(self, vault):
        publisher = Publisher(VaultStorage(vault), PublisherConfig(target_folder_path="pub"))
        stats = publisher.get_publishing_stats(NoteRef("root.md"))

        assert stats.total_files == 4
        assert [n.path for n in stats.linked_files] == ["A.md", "C.md", "B.md"]
        assert stats.estimated_size == len("12345 [[A]] [[B]]") + len("abc [[C]]") + len("b") + len("cc")
        assert not (vault / "pub").exists()

    def test_stats_without_links(self, vault):
        publisher = Publisher(VaultStorage(vault), PublisherConfig(target_folder_path="pub"))
        stats = publisher.get_publishing_stats(NoteRef("root.md"), include_linked=False)

        assert stats.total_files == 1
        assert stats.linked_files == []
        assert stats.estimated_size == len("12345 [[A]] [[B]]")

    def test_stats_respect_max_depth(self, vault):
        publisher = Publisher(VaultStorage(vault), PublisherConfig(target_folder_path="pub", max_depth=1))
        stats = publisher.get_publishing_stats(NoteRef("root.md"))
        assert {n.path for n in stats.linked_files} == {"A.md", "B.md"}

    def test_unreadable_linked_note_not_counted(self, vault):
        (vault / "B.md").write_bytes(b"\xff\xfe not utf-8")
        publisher = Publisher(VaultStorage(vault), PublisherConfig(target_folder_path="pub"))
        stats = publisher.get_publishing_stats(NoteRef("root.md"))

        assert [n.path for n in stats.linked_files] == ["A.md", "C.md", "B.md"]
        assert stats.total_files == 4
        assert stats.estimated_size == len("12345 [[A]] [[B]]") + len("abc [[C]]") + len("cc")

    def test_unreadable_root_returns_defaults(self, vault):
        publisher = Publisher(VaultStorage(vault), PublisherConfig(target_folder_path="pub"))
        stats = publisher.get_publishing_stats(NoteRef("gone.md"))
        assert stats.total_files == 1
        assert stats.estimated_size == 0


class TestConfig:
    """Tests for configuration loading."""

    def test_defaults(self):
        config = load_config(None)
        assert config.target_folder_path == "700_Publish"
        assert config.include_linked_notes is True
        assert config.max_depth == 5
        assert config.exclude_patterns == []
        assert config.preserve_folder_structure is True
        assert config.add_publish_prefix is False
        assert config.publish_prefix == "published_"
        assert config.base_url == ""

    def test_from_yaml_file(self, tmp_path):
        config_path = tmp_path / "publish.yaml"
        config_path.write_text(
            "target_folder_path: ' site '\n"
            "max_depth: 3\n"
            "exclude_patterns:\n  - '^Daily/'\n  - 'Template'\n"
            "base_url: https://example.com\n"
            "renderer_command: node render.js\n"
        )
        config = load_config(config_path)

        assert config.target_folder_path == "site"
        assert config.max_depth == 3
        assert config.exclude_patterns == ["^Daily/", "Template"]
        assert config.base_url == "https://example.com"
        assert config.renderer_command == ["node", "render.js"]

    @pytest.mark.parametrize("depth", [0, 21, "deep", True])
    def test_out_of_range_depth_keeps_default(self, depth):
        assert load_config({"max_depth": depth}).max_depth == 5

    def test_unknown_keys_ignored(self):
        config = load_config({"theme": "dark", "max_depth": 2})
        assert config.max_depth == 2
        assert not hasattr(config, "theme")

    def test_single_pattern_string(self):
        assert load_config({"exclude_patterns": "^Private"}).exclude_patterns == ["^Private"]

    def test_empty_file(self, tmp_path):
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("")
        assert load_config(config_path) == PublisherConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path):
        config_path = tmp_path / "list.yaml"
        config_path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(config_path)

    def test_invalid_yaml(self, tmp_path):
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("key: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(config_path)

    def test_create_publisher_from_config(self, tmp_path):
        publisher = create_publisher_from_config(
            tmp_path, {"target_folder_path": "out", "renderer_command": ["render-drawing"]}
        )
        assert publisher.config.target_folder_path == "out"
        assert isinstance(publisher.processor.renderer, CommandRenderer)
        assert publisher.processor.image_folder_path == "out/_Image"

    def test_create_publisher_without_renderer(self, tmp_path):
        publisher = create_publisher_from_config(tmp_path)
        assert publisher.processor.renderer is None


class TestCli:
    """Tests for the command line interface."""

    @pytest.fixture
    def vault(self, tmp_path):
        write_files(tmp_path, {
            "Notes/Start here.md": "[[Next]]",
            "Notes/Next.md": "done",
            "publish.yaml": "target_folder_path: pub\nbase_url: http://x\n",
        })
        return tmp_path

    def test_publish(self, vault, capsys):
        code = main(["publish", str(vault), "Notes/Start here.md", "-c", str(vault / "publish.yaml")])
        out = capsys.readouterr().out

        assert code == 0
        assert "Published 2 files" in out
        assert "URL: http://x/Notes/Start-here" in out
        assert (vault / "pub" / "Notes" / "Next.md").exists()

    def test_publish_only(self, vault, capsys):
        code = main(["publish", str(vault), "Notes/Start here.md", "-c", str(vault / "publish.yaml"), "--only"])
        out = capsys.readouterr().out

        assert code == 0
        assert "Published 1 file\n" in out
        assert not (vault / "pub" / "Notes" / "Next.md").exists()

    def test_publish_missing_note(self, vault, capsys):
        code = main(["publish", str(vault), "Nope.md", "-c", str(vault / "publish.yaml")])
        err = capsys.readouterr().err

        assert code == 1
        assert "No file provided" in err

    def test_publish_negative_max_depth(self, vault, capsys):
        code = main(["publish", str(vault), "Notes/Start here.md", "-c", str(vault / "publish.yaml"), "--max-depth", "-1"])
        err = capsys.readouterr().err

        assert code == 1
        assert "Invalid max depth: -1" in err
        assert not (vault / "pub").exists()

    def test_publish_normalizes_note_path(self, vault, capsys):
        code = main(["publish", str(vault), "./Notes//Start here.md", "-c", str(vault / "publish.yaml")])
        out = capsys.readouterr().out

        assert code == 0
        assert "URL: http://x/Notes/Start-here" in out

    def test_stats(self, vault, capsys):
        code = main(["stats", str(vault), "Notes/Start here.md", "-c", str(vault / "publish.yaml")])
        out = capsys.readouterr().out

        assert code == 0
        assert "Total files: 2" in out
        assert "- Next.md" in out

    def test_bad_config(self, vault, capsys):
        code = main(["stats", str(vault), "Notes/Start here.md", "-c", str(vault / "missing.yaml")])
        assert code == 1
