import pytest
from langchain_core.messages import AIMessage

from modification_service.errors import ReplyFormatError
from modification_service.utils.json_utils import (
    extract_code_block,
    extract_json_object,
    extract_string_content,
    preview,
)


class TestExtractJsonObject:
    def test_plain_object(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_fenced_object(self):
        assert extract_json_object('Result:\n```json\n{"a": [1, 2]}\n```\nDone.') == {"a": [1, 2]}

    def test_object_inside_prose(self):
        assert extract_json_object('Sure! {"strategy": "FULL_FILE"} hope this helps') == {"strategy": "FULL_FILE"}

    def test_non_object_json_is_rejected(self):
        with pytest.raises(ReplyFormatError):
            extract_json_object("[1, 2, 3]")

    def test_error_carries_raw_reply(self):
        with pytest.raises(ReplyFormatError) as info:
            extract_json_object("no json here")
        assert info.value.raw_reply == "no json here"


class TestExtractCodeBlock:
    def test_marker_before_fence(self):
        marker, code = extract_code_block("// FILE: src/App.tsx\n```tsx\nconst a = 1;\n```")

        assert marker == "src/App.tsx"
        assert code == "const a = 1;\n"

    def test_marker_inside_fence(self):
        marker, code = extract_code_block("```\n// FILE: src/x.ts\nexport {};\n```")

        assert marker == "src/x.ts"
        assert code == "export {};\n"

    def test_without_marker(self):
        assert extract_code_block("```js\nlet x;\n```") == (None, "let x;\n")

    def test_missing_or_empty_block(self):
        with pytest.raises(ReplyFormatError):
            extract_code_block("just prose")
        with pytest.raises(ReplyFormatError):
            extract_code_block("```tsx\n\n```")


def test_extract_string_content_variants():
    assert extract_string_content("text") == "text"
    assert extract_string_content(AIMessage(content="hello")) == "hello"
    assert extract_string_content(AIMessage(content=[{"type": "text", "text": "a"}, "b"])) == "ab"


def test_preview_flattens_and_truncates():
    assert preview("a\n  b") == "a b"
    assert preview("x" * 400, limit=10) == "x" * 10 + "..."
