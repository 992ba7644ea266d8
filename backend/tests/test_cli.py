"""Tests for Japavel CLI commands."""

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from japavel.cli.main import cli

USER_DSL = """\
Model: User
Fields:
  id: uuid
  email: email
  nickname: string?
  role: enum(admin,user)
Relations:
  posts:
    type: hasMany
    model: Post
"""

POST_DSL = """\
Model: Post
Fields:
  id: uuid
  title: string
Relations:
  author:
    type: belongsTo
    model: User
    foreignKey: authorId
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def schema_dir(tmp_path) -> Path:
    (tmp_path / "user.yaml").write_text(USER_DSL)
    (tmp_path / "post.yml").write_text(POST_DSL)
    return tmp_path


class TestSchemaValidate:
    def test_validate_succeeds(self, runner, schema_dir):
        result = runner.invoke(cli, ["schema", "validate", str(schema_dir)])
        assert result.exit_code == 0
        assert "All schemas are valid" in result.output

    def test_validate_shows_models(self, runner, schema_dir):
        result = runner.invoke(cli, ["schema", "validate", str(schema_dir)])
        assert "Loaded 2 model(s)" in result.output
        assert "Post (2 fields, 1 relations)" in result.output
        assert "User (4 fields, 1 relations)" in result.output

    def test_default_directory(self, runner, schema_dir, monkeypatch):
        target = schema_dir / "schemas"
        target.mkdir()
        (target / "user.yaml").write_text("Model: User\nFields:\n  id: uuid\n")
        monkeypatch.chdir(schema_dir)

        result = runner.invoke(cli, ["schema", "validate"])
        assert result.exit_code == 0
        assert "Loaded 1 model(s)" in result.output

    def test_relationship_errors_fail(self, runner, schema_dir):
        (schema_dir / "post.yml").unlink()
        result = runner.invoke(cli, ["schema", "validate", str(schema_dir)])
        assert result.exit_code == 1
        assert 'User.posts: References unknown model "Post"' in result.output
        assert "1 relationship error(s) found" in result.output

    def test_invalid_file_fails(self, runner, schema_dir):
        (schema_dir / "broken.yaml").write_text("Model: Broken\nFields:\n  x: blob\n")
        result = runner.invoke(cli, ["schema", "validate", str(schema_dir)])
        assert result.exit_code == 1
        assert "broken.yaml" in result.output
        assert "All schemas are valid" not in result.output

    def test_missing_directory(self, runner, tmp_path):
        result = runner.invoke(cli, ["schema", "validate", str(tmp_path / "nope")])
        assert result.exit_code != 0


class TestSchemaShow:
    def test_show_normalizes_fields(self, runner, schema_dir):
        result = runner.invoke(cli, ["schema", "show", str(schema_dir / "user.yaml")])
        assert result.exit_code == 0

        data = yaml.safe_load(result.output)
        assert data["Model"] == "User"
        assert data["Fields"]["id"] == {"type": "uuid", "required": True, "unique": False}
        assert data["Fields"]["nickname"]["required"] is False
        assert data["Fields"]["role"]["enum"] == ["admin", "user"]
        assert data["Relations"]["posts"] == {"type": "hasMany", "model": "Post"}

    def test_show_invalid_file(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("Fields: {}\n")
        result = runner.invoke(cli, ["schema", "show", str(path)])
        assert result.exit_code == 1
        assert "Model" in result.output


class TestVerboseFlag:
    def test_verbose_accepted(self, runner, schema_dir):
        result = runner.invoke(cli, ["-v", "schema", "validate", str(schema_dir)])
        assert result.exit_code == 0
