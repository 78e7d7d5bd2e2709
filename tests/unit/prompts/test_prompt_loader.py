"""Unit tests for PromptLoader."""

import pytest
from jinja2 import UndefinedError

from chainsage.prompts.loader import PromptLoader, split_front_matter


@pytest.fixture
def loader():
    return PromptLoader()


def test_front_matter_split():
    metadata, body = split_front_matter("---\nname: demo\n---\nHello {{ name }}")

    assert metadata == {"name": "demo"}
    assert body == "Hello {{ name }}"


def test_text_without_front_matter_unchanged():
    assert split_front_matter("Hello") == ({}, "Hello")


@pytest.mark.parametrize("dialect", ["flipside", "dune", "covalent"])
def test_sql_prompts_render(loader, dialect):
    prompt = loader.render(f"agents/sql_{dialect}.md", question="How many blocks today?", sentinel="ERROR:")

    assert "How many blocks today?" in prompt
    assert "ERROR:" in prompt
    assert not prompt.startswith("---")


def test_metadata_available(loader):
    assert loader.get_metadata("agents/summarization.md")["name"] == "summarization"


def test_missing_variable_raises(loader):
    with pytest.raises(UndefinedError):
        loader.render("agents/summarization.md", question="q")


def test_unknown_prompt(loader):
    with pytest.raises(FileNotFoundError):
        loader.render("agents/does_not_exist.md")


def test_custom_directory(tmp_path):
    (tmp_path / "greeting.md").write_text("---\nname: greeting\n---\nHi {{ who }}!\n")

    loader = PromptLoader(tmp_path)

    assert loader.render("greeting.md", who="Ada") == "Hi Ada!"
    assert loader.load("greeting.md") == "Hi {{ who }}!\n"
