"""
Unit tests for PageContext.
"""

import pytest

from just_id.infrastructure.identity import PageContext


@pytest.mark.unit
class TestPageContext:
    @pytest.mark.parametrize(
        "page_url, expected",
        [
            (None, None),
            ("", None),
            ("https://publisher.example/article", None),
            ("https://publisher.example/?__jtUid=abc", "abc"),
            ("https://publisher.example/?x=1&__jtUid=abc&__jtUid=def", "abc"),
        ],
    )
    def test_debug_uid(self, page_url, expected) -> None:
        assert PageContext(page_url=page_url).debug_uid() == expected

    def test_known_user_ids_value(self) -> None:
        assert PageContext(user_ids={"a": 1}).known_user_ids() == {"a": 1}

    def test_known_user_ids_callable(self) -> None:
        assert PageContext(user_ids=lambda: ["x"]).known_user_ids() == ["x"]
