"""Client for a local OpenAI-compatible chat completions server.

The review algorithm:
    fetch_issues() → _build_prompt()
                   → _call_with_retry() → _call_api()
                   → _extract_reviews()

The model is asked to answer through a single ``reviewText`` tool call whose
arguments carry the issue list. Every failure on the way (connection refused,
non-2xx status, missing tool call, undecodable arguments) ends the cycle
quietly: fetch_issues() returns None and request_review() returns one of the
sentinel strings below. Nothing here raises to the caller.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from openai import OpenAI

from textreview_core.formatter import format_issues, render_issues
from textreview_core.models import RawIssue

if TYPE_CHECKING:
    from textreview_core.document import Document

logger = logging.getLogger(__name__)

REVIEW_FAILED = "レビュー結果がERRORです"
NO_REVIEW = "レビュー結果がありません"

TOOL_NAME = "reviewText"

REVIEW_TOOL = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": (
            "文章の誤字脱字・悪文・表現ミス・不自然な日本語・読みづらさ・論理の飛躍・冗長表現などをレビューし、問題点を指摘します"
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "reviews": {
                    "type": "array",
                    "description": "レビュー結果の配列",
                    "items": {
                        "type": "object",
                        "properties": {
                            "severity": {
                                "type": "string",
                                "enum": ["ERROR", "WARNING", "INFO", "HINT"],
                                "description": (
                                    "問題の重要度（ERROR:誤字脱字や意味不明な文、WARNING:不自然な表現や論理の飛躍、"
                                    "INFO:改善提案、HINT:細かな表現やスタイル）"
                                ),
                            },
                            "message": {
                                "type": "string",
                                "description": "問題の内容説明（日本語で簡潔に記述）",
                            },
                            "codeSnippet": {
                                "type": "string",
                                "description": "問題のある該当文やフレーズ。行番号は不要で、最小限の判別可能な文章断片を記載。",
                            },
                        },
                        "required": ["severity", "message"],
                    },
                },
            },
            "required": ["reviews"],
        },
    },
}

_INSTRUCTIONS = [
    "上記の文章をレビューし、誤字脱字・悪文・表現ミス・不自然な日本語・読みづらさ・論理の飛躍・冗長表現などを診断してください。",
    "重要度は次の4つのいずれかから選択してください: [ERROR], [WARNING], [INFO], [HINT]",
    "- [ERROR]: 誤字脱字や意味不明な文、重大な論理破綻",
    "- [WARNING]: 不自然な表現、論理の飛躍、文法ミス",
    "- [INFO]: 改善提案やより良い表現",
    "- [HINT]: 細かな表現やスタイル、語尾、助詞の使い方など",
    "指摘は直接的で簡潔な日本語で、文章の改善点を具体的に示してください",
    "同じ問題の繰り返しは避け、各問題は一度だけ報告してください",
    "markdown形式の引用ブロック中は原文の表現に従ってください",
    "URLに:embedが含まれているのは、URLを埋め込むためであるため指摘不要",
]

_LOCATION_INSTRUCTIONS = [
    "重要：位置情報（行番号や列番号）を指定しないでください。代わりに、問題のある箇所を特定できる文章断片（フレーズや文）を提供してください。",
    "文章断片には最小限の必要なコンテキスト（特徴的な語句や前後の文脈）を含めてください。",
]


class ReviewClient:
    # A single attempt by default: a failed cycle is retried by the next
    # save/open trigger, not by hammering a local server that is down.
    MAX_RETRIES: int = 1
    TEMPERATURE = 0

    def __init__(
        self,
        model: str,
        port: int,
        custom_instructions: str | None = None,
        host: str = "localhost",
        client=None,
    ):
        self.model = model
        self.base_url = f"http://{host}:{port}/v1"
        self.custom_instructions = custom_instructions
        # Local servers ignore the key, but the SDK refuses to start without one.
        self.client = client if client is not None else OpenAI(base_url=self.base_url, api_key="local", max_retries=0)

    @classmethod
    def from_config(cls, config: dict, custom_instructions: str | None = None) -> ReviewClient:
        return cls(
            model=config["model"],
            port=int(config["port"]),
            custom_instructions=custom_instructions,
            host=config.get("host", "localhost"),
        )

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def fetch_issues(self, document: Document) -> list[RawIssue] | None:
        """Ask the model to review ``document``.

        Returns the reported issues, or None if the cycle failed or the model
        did not answer through the review tool.
        """
        result = self._review(document)
        return None if isinstance(result, str) else result

    def request_review(self, document: Document) -> str:
        """Review ``document`` and render the result in the line-based text format.

        Returns REVIEW_FAILED on transport or payload errors and NO_REVIEW when
        the model produced no review tool call.
        """
        result = self._review(document)
        if isinstance(result, str):
            return result
        return render_issues(format_issues(result, document))

    # ------------------------------------------------------------------ #
    # Internals                                                            #
    # ------------------------------------------------------------------ #

    def _review(self, document: Document) -> list[RawIssue] | str:
        """Run one review cycle; a str result is the sentinel explaining the absence of issues."""
        response = self._call_with_retry(self._build_prompt(document))
        if response is None:
            return REVIEW_FAILED
        try:
            payload = self._extract_reviews(response)
        except (ValueError, TypeError, AttributeError, IndexError) as e:
            logger.warning("Malformed review response for %s: %s", document.file_name, e)
            return REVIEW_FAILED
        if payload is None:
            logger.info("Model returned no %s call for %s", TOOL_NAME, document.file_name)
            return NO_REVIEW
        return [issue for issue in (RawIssue.from_payload(item) for item in payload) if issue is not None]

    def _call_api(self, prompt: str):
        return self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            tools=[REVIEW_TOOL],
            tool_choice="auto",
            temperature=self.TEMPERATURE,
            stream=False,
        )

    def _call_with_retry(self, prompt: str):
        """Call _call_api up to MAX_RETRIES times with exponential backoff; None on failure."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(prompt)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "Review request to %s failed after %d attempt(s): %s",
                        self.base_url,
                        self.MAX_RETRIES,
                        e,
                    )
                    return None
                delay = 2**attempt
                logger.warning(
                    "Review request error (attempt %d/%d): %s. Retrying in %ds...",
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        return None

    def _build_prompt(self, document: Document) -> str:
        lines = ["```", document.text, "```", *_INSTRUCTIONS]
        lines.append(f"ファイルパス: {document.file_name}")
        lines.append(f"言語: {document.language_id}")
        lines.append(f"文章の長さ: {document.line_count}行")
        lines.append("")
        lines.extend(_LOCATION_INSTRUCTIONS)
        if self.custom_instructions and self.custom_instructions.strip():
            lines.append(self.custom_instructions.strip())
        return "\n".join(lines)

    def _extract_reviews(self, response) -> list | None:
        """Return the ``reviews`` array from the first reviewText call, or None if there is none.

        Raises ValueError when the call exists but its arguments are not a JSON object.
        """
        message = response.choices[0].message
        calls = [tc.function for tc in (message.tool_calls or []) if tc.function is not None]
        # Older servers answer with the deprecated single function_call field.
        legacy = getattr(message, "function_call", None)
        if legacy is not None:
            calls.append(legacy)

        for fn in calls:
            if fn.name != TOOL_NAME:
                continue
            arguments = json.loads(fn.arguments)
            if not isinstance(arguments, dict):
                raise ValueError(f"{TOOL_NAME} arguments are not an object")
            reviews = arguments.get("reviews")
            if not isinstance(reviews, list):
                return None
            return reviews
        return None
