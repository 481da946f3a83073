"""Tests for PackerConfig validation, resolution and loading"""

import json

import pytest

from globlist_packer.config import PackerConfig, config_from_mapping, load_config_file
from globlist_packer.errors import ValidationError
from globlist_packer.models import ArchiveType, PackMode


class TestPackerConfig:
    """Test cases for PackerConfig"""

    def test_defaults(self):
        config = PackerConfig()

        assert config.archive_type is ArchiveType.TAR
        assert config.use_gitignore_files
        assert config.include_default_ignores
        assert not config.include_empty
        assert config.mode is PackMode.ARCHIVE

    def test_copy_mode(self, tmp_path):
        assert PackerConfig(copy_files_to=tmp_path / "out").mode is PackMode.COPY

    def test_invalid_archive_type(self):
        with pytest.raises(ValidationError, match="archive_type"):
            PackerConfig(archive_type="rar")

    @pytest.mark.parametrize("value", [0, -1, "10", True])
    def test_invalid_max_file_count(self, value):
        with pytest.raises(ValidationError, match="max_file_count"):
            PackerConfig(max_file_count=value)

    def test_single_ignore_list_coerced(self):
        assert PackerConfig(ignore_list_file_names="a.ignore").ignore_list_file_names == ["a.ignore"]

    def test_archive_root_dir_name_must_be_relative(self):
        with pytest.raises(ValidationError):
            PackerConfig(archive_root_dir_name="../escape")

    @pytest.mark.parametrize("options", [
        {"zlib": {"level": 99}},
        {"zlib": {"level": -1}},
        {"zlib": {"level": "9"}},
        {"zlib": {"level": True}},
        {"zlib": 6},
    ])
    def test_invalid_compression_level(self, options):
        with pytest.raises(ValidationError, match="zlib"):
            PackerConfig(archive_options=options)

    def test_valid_compression_level(self):
        assert PackerConfig(archive_options={"zlib": {"level": 0}}).archive_options == {
            "zlib": {"level": 0}
        }

    def test_transformer_must_be_callable(self):
        with pytest.raises(ValidationError, match="file_name_transformer"):
            PackerConfig(file_name_transformer="not callable")


class TestResolve:
    """Test cases for PackerConfig.resolve"""

    def test_relative_paths_resolve_against_root(self, tmp_path):
        resolved = PackerConfig(root_dir=tmp_path, out_dir="dist", copy_files_to="copy").resolve()

        assert resolved.root_dir == tmp_path
        assert resolved.out_dir == tmp_path / "dist"
        assert resolved.copy_files_to == tmp_path / "copy"
        assert resolved.mode is PackMode.COPY

    def test_root_defaults_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert PackerConfig().resolve().root_dir.resolve() == tmp_path.resolve()

    def test_missing_root(self, tmp_path):
        with pytest.raises(ValidationError, match="not a directory"):
            PackerConfig(root_dir=tmp_path / "missing").resolve()

    def test_copy_destination_equal_to_root(self, tmp_path):
        with pytest.raises(ValidationError, match="same directory as rootDir"):
            PackerConfig(root_dir=tmp_path, copy_files_to=".").resolve()


class TestConfigLoading:
    """Test cases for mapping and file based configuration"""

    def test_camel_case_keys(self, tmp_path):
        config = config_from_mapping({
            "rootDir": str(tmp_path),
            "ignoreListFileNames": ["deploy.ignore"],
            "archiveType": "zip",
            "maxFileCount": 5,
        })

        assert config.root_dir == str(tmp_path)
        assert config.ignore_list_file_names == ["deploy.ignore"]
        assert config.archive_type is ArchiveType.ZIP
        assert config.max_file_count == 5

    def test_overrides_win(self):
        config = PackerConfig.from_mapping({"archive_type": "zip"}, archive_type="tar")

        assert config.archive_type is ArchiveType.TAR

    def test_unknown_key(self):
        with pytest.raises(ValidationError, match="Unknown config option"):
            config_from_mapping({"archiveFormat": "zip"})

    def test_callables_rejected_from_mapping(self):
        with pytest.raises(ValidationError):
            config_from_mapping({"on_step_change": "print"})

    def test_load_config_file(self, tmp_path):
        config_path = tmp_path / "packer.json"
        config_path.write_text(json.dumps({"archiveName": "release"}))

        assert load_config_file(config_path) == {"archiveName": "release"}

    def test_load_config_file_errors(self, tmp_path):
        with pytest.raises(ValidationError, match="not found"):
            load_config_file(tmp_path / "missing.json")

        bad = tmp_path / "bad.json"
        bad.write_text("[1, 2]")
        with pytest.raises(ValidationError, match="JSON object"):
            load_config_file(bad)

    def test_describe_is_json_serializable(self, tmp_path):
        config = PackerConfig(root_dir=tmp_path, file_name_transformer=lambda name, path: name)

        snapshot = config.describe()

        json.dumps(snapshot)
        assert snapshot["file_name_transformer"] is True
        assert snapshot["archive_type"] == "tar"
