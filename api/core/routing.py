"""HTTP verbs a service may register routes for."""

from enum import Enum as PyEnum


class HttpMethod(str, PyEnum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: "str | HttpMethod") -> "HttpMethod":
        """Accept a member or a verb name in any case ("post", "Post")."""
        if isinstance(value, cls):
            return value
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unsupported HTTP method: {value!r}") from None
