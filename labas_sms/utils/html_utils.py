"""
labas_sms/utils/html_utils.py

Purpose: HTML helpers for scraping the portal

- Parser-agnostic node protocol and depth-first search
- BeautifulSoup adapter
- Anti-forgery token lookup
"""

from typing import Callable, Optional, Protocol

from bs4 import BeautifulSoup, Tag
from bs4.element import PageElement

from labas_sms.core.exceptions import TokenNotFoundError, TokenValueMissingError


class HtmlNode(Protocol):
    """The four operations the token search needs from a parsed document."""

    def is_input(self) -> bool: ...

    def get_attribute(self, name: str) -> Optional[str]: ...

    def first_child(self) -> Optional["HtmlNode"]: ...

    def next_sibling(self) -> Optional["HtmlNode"]: ...


class SoupNode:
    """
    HtmlNode over a BeautifulSoup element.
    Text, comments and doctypes are nodes too; they have no attributes.
    """

    __slots__ = ("element",)

    def __init__(self, element: PageElement):
        self.element = element

    def is_input(self) -> bool:
        return isinstance(self.element, Tag) and self.element.name == "input"

    def get_attribute(self, name: str) -> Optional[str]:
        if not isinstance(self.element, Tag):
            return None
        value = self.element.attrs.get(name)
        # bs4 splits multi-valued attributes such as class into lists
        if isinstance(value, list):
            return " ".join(value)
        return value

    def first_child(self) -> Optional["SoupNode"]:
        if not isinstance(self.element, Tag) or not self.element.contents:
            return None
        return SoupNode(self.element.contents[0])

    def next_sibling(self) -> Optional["SoupNode"]:
        sibling = self.element.next_sibling
        return SoupNode(sibling) if sibling is not None else None


def parse_html(markup) -> SoupNode:
    """
    Parses a full HTML document.
    A repeated attribute keeps its first value, as browsers do.

    Args:
        markup: Page body as str or bytes (bytes are decoded by bs4)

    Returns:
        Root node of the document
    """
    return SoupNode(BeautifulSoup(markup, "html.parser", on_duplicate_attribute="ignore"))


def find_first(root: HtmlNode, predicate: Callable[[HtmlNode], bool]) -> Optional[HtmlNode]:
    """
    Depth-first search in document order, children before siblings.

    Iterative so deeply nested pages cannot hit the recursion limit.
    Siblings of `root` are searched as well.

    Returns:
        First node matching `predicate`, or None
    """
    stack = []
    node = root
    while node is not None:
        if predicate(node):
            return node
        sibling = node.next_sibling()
        if sibling is not None:
            stack.append(sibling)
        child = node.first_child()
        if child is not None:
            stack.append(child)
        node = stack.pop() if stack else None
    return None


def is_named_input(field_name: str) -> Callable[[HtmlNode], bool]:
    """Predicate for an <input> whose name attribute equals field_name exactly."""
    def predicate(node: HtmlNode) -> bool:
        return node.is_input() and node.get_attribute("name") == field_name
    return predicate


def find_token(root: HtmlNode, field_name: str) -> str:
    """
    Reads the value of the first <input name=field_name> under root.

    Looking for:
        <input type="hidden" id="sms_submit__token"
               name="sms_submit[_token]" value="pXoZYkVsiTmj0KFuILwx4E..." />

    Raises:
        TokenNotFoundError: No such input
        TokenValueMissingError: The input has no value attribute
    """
    node = find_first(root, is_named_input(field_name))
    if node is None:
        raise TokenNotFoundError(f"input {field_name}: not found", details={"field": field_name})

    value = node.get_attribute("value")
    if value is None:
        raise TokenValueMissingError(
            f"input {field_name}: value attribute not found",
            details={"field": field_name}
        )
    return value


def extract_token(markup, field_name: str) -> str:
    """Parses `markup` and returns the token; see find_token."""
    return find_token(parse_html(markup), field_name)
