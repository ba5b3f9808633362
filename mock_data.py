"""Canned provider replies for running without API calls."""

# Reply text in the shape the review prompt asks for
MOCK_REVIEW_TEXT = """```json
[
  {
    "line": 3,
    "type": "warning",
    "category": "best-practices",
    "message": "Division by len(numbers) raises ZeroDivisionError for an empty list.",
    "suggestion": "Return early when the list is empty: if not numbers: return 0",
    "code": "    return total / len(numbers)",
    "context": ["def calculate_average(numbers):", "    total = sum(numbers)"]
  }
]
```"""

MOCK_CHAT_ENVELOPE = {
    "id": "chatcmpl-mock",
    "object": "chat.completion",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": MOCK_REVIEW_TEXT},
            "finish_reason": "stop",
        }
    ],
}

MOCK_MESSAGES_ENVELOPE = {
    "id": "msg-mock",
    "type": "message",
    "role": "assistant",
    "content": [{"type": "text", "text": MOCK_REVIEW_TEXT}],
}
