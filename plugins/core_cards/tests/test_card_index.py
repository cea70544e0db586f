# plugins/core_cards/tests/test_card_index.py

import pytest

from plugins.core_cards.contracts import Card
from plugins.core_cards.index import FileCardIndex
from tests.conftest_data import build_project_tree, read_json, write_text


@pytest.fixture
def card_project(tmp_path):
    return build_project_tree(tmp_path / "cards_project")


class TestReading:
    async def test_reads_cards_recursively(self, card_project):
        index = FileCardIndex(card_project)
        cards = await index.cards()

        assert [c.key for c in cards] == ["test_1", "test_2"]
        assert cards[0].metadata["title"] == "First"
        assert cards[0].content == "First card\n"
        assert cards[1].path.endswith("test_2")
        assert all(c.template is None for c in cards)

    async def test_reads_template_cards(self, card_project):
        index = FileCardIndex(card_project)
        cards = await index.template_cards()

        assert [c.key for c in cards] == ["test_tpl1"]
        assert cards[0].template == "test/templates/default"

    async def test_prefix_argument_wins(self, card_project):
        index = FileCardIndex(card_project, prefix="other")
        assert (await index.template_cards())[0].template == "other/templates/default"

    async def test_empty_project(self, tmp_path):
        index = FileCardIndex(tmp_path)
        assert await index.cards() == []
        assert await index.template_cards() == []

    async def test_broken_metadata_is_tolerated(self, card_project):
        write_text(card_project / "cardRoot" / "test_3" / "index.json", "{broken")
        cards = await FileCardIndex(card_project).cards()
        broken = next(c for c in cards if c.key == "test_3")
        assert broken.metadata is None


class TestWriting:
    async def test_update_metadata(self, card_project):
        index = FileCardIndex(card_project)
        card = (await index.cards())[0]

        await index.update_card_metadata(card, {**card.metadata, "title": "Renamed"})

        assert card.metadata["title"] == "Renamed"
        assert read_json(card_project / "cardRoot" / "test_1" / "index.json")["title"] == "Renamed"

    async def test_update_content(self, card_project):
        index = FileCardIndex(card_project)
        card = (await index.cards())[0]

        await index.update_card_content(card, "New text\n")

        assert (card_project / "cardRoot" / "test_1" / "index.adoc").read_text(encoding="utf-8") == "New text\n"


def test_serialized_contains_metadata_and_content():
    card = Card(key="k", path="/x", metadata={"cardType": "test/cardTypes/task"}, content="see test/reports/r")
    text = card.serialized()
    assert "test/cardTypes/task" in text
    assert "test/reports/r" in text
