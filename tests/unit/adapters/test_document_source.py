"""Unit tests for the document source helpers and the in-memory fake."""

import pytest

from easylink.adapters.document_source import FakeDocumentSource, splice_line
from easylink.domain.errors import CorpusReadError
from easylink.domain.model import Document


def test_splice_line_appends_to_target_line():
    assert splice_line("a\nb\nc", 1, " ^x") == "a\nb ^x\nc"


def test_splice_line_keeps_carriage_return_last():
    assert splice_line("a\r\nb\r\n", 0, " ^x") == "a ^x\r\nb\r\n"


@pytest.mark.parametrize("line", [-1, 3])
def test_splice_line_rejects_out_of_range(line):
    with pytest.raises(IndexError):
        splice_line("a\nb\nc", line, "!")


@pytest.mark.asyncio
async def test_fake_lists_documents_in_insertion_order(fake_source):
    documents = await fake_source.list_documents()
    assert [d.path for d in documents] == ["Study/Machine Learning.md", "Kitchen/Pasta.md"]


@pytest.mark.asyncio
async def test_fake_unindexed_document_has_no_structure():
    source = FakeDocumentSource()
    document = source.add("New.md", "# Fresh", indexed=False)
    assert await source.get_structure(document) is None
    assert await source.read(document) == "# Fresh"


@pytest.mark.asyncio
async def test_fake_failing_read_raises_corpus_read_error(fake_source):
    fake_source.failing_reads.add("Kitchen/Pasta.md")
    with pytest.raises(CorpusReadError) as exc_info:
        await fake_source.read(Document(path="Kitchen/Pasta.md"))
    assert exc_info.value.path == "Kitchen/Pasta.md"


@pytest.mark.asyncio
async def test_fake_append_records_write_and_reparses(fake_source):
    document = Document(path="Kitchen/Pasta.md")
    await fake_source.append_to_line(document, 4, " ^abc123")

    assert fake_source.writes == [("Kitchen/Pasta.md", 4, " ^abc123")]
    assert fake_source.content("Kitchen/Pasta.md").split("\n")[4] == "The cat watched the pot boil. ^abc123"
    structure = await fake_source.get_structure(document)
    assert "abc123" in structure.blocks


@pytest.mark.asyncio
async def test_fake_failing_write_leaves_content_untouched(fake_source):
    fake_source.failing_writes.add("Kitchen/Pasta.md")
    before = fake_source.content("Kitchen/Pasta.md")
    with pytest.raises(OSError):
        await fake_source.append_to_line(Document(path="Kitchen/Pasta.md"), 4, " ^abc123")
    assert fake_source.content("Kitchen/Pasta.md") == before
    assert fake_source.writes == []


def test_default_link_text_is_basename(fake_source):
    assert fake_source.link_text(Document(path="Study/Machine Learning.md")) == "Machine Learning"
