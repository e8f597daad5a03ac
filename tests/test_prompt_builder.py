import pytest

from pagechat.prompt_builder import PromptContext, build_prompt


def test_grounded_prompt_contains_page_text_and_number() -> None:
    prompt = build_prompt(
        PromptContext(document_id="doc", question="  Summarize  ", page_text="Methods\nWe measured.", page_label="2")
    )

    assert "PAGE NUMBER: 2" in prompt
    assert "PAGE TEXT:\nMethods\nWe measured." in prompt
    assert prompt.endswith("USER QUESTION:\nSummarize")
    assert "DOCUMENT ID" not in prompt


def test_fallback_prompt_names_document_and_page() -> None:
    prompt = build_prompt(PromptContext(document_id="abc-123", question="What is this?", page_label="4"))

    assert prompt.startswith("I do not have the text of the document.")
    assert "DOCUMENT ID: abc-123" in prompt
    assert "PAGE: 4" in prompt
    assert prompt.endswith("USER QUESTION:\nWhat is this?")


def test_empty_page_text_uses_fallback_template() -> None:
    context = PromptContext(document_id="doc", question="Hi", page_text="")

    assert context.grounded is False
    assert "PAGE: unknown" in build_prompt(context)


def test_none_question_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_prompt(PromptContext(document_id="doc", question=None))  # type: ignore[arg-type]
