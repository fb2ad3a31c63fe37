"""Fluent XML document builder used to assemble OAI-PMH responses.

Elements are opened with :meth:`Response.element` and closed with
:meth:`Response.end`; every call returns the builder so calls can be chained
in the shape of the document::

    response.element("request", url).attr("verb", "Identify").end()

Prefixed element and attribute names (``dc:title``, ``xsi:schemaLocation``)
are resolved against the namespaces declared with ``nsmap`` on the element
or one of its ancestors. Unprefixed names inherit the default namespace in
scope.
"""

from __future__ import annotations

from typing import Any

from lxml import etree


class Response:
    def __init__(self, version: str = "1.0", encoding: str = "utf-8") -> None:
        self.version = version
        self.encoding = encoding
        self._root: etree._Element | None = None
        self._stack: list[etree._Element] = []
        self._stylesheet: str | None = None

    def stylesheet(self, href: str) -> "Response":
        self._stylesheet = href
        return self

    @property
    def current(self) -> etree._Element | None:
        return self._stack[-1] if self._stack else None

    def element(self, name: str, value: Any = None, nsmap: dict[str | None, str] | None = None) -> "Response":
        parent = self.current
        scope = dict(parent.nsmap) if parent is not None else {}
        if nsmap:
            scope.update(nsmap)
        tag = self._qualify(name, scope, default=True)

        if parent is None:
            if self._root is not None:
                raise ValueError("XML document already has a root element")
            node = etree.Element(tag, nsmap=nsmap)
            self._root = node
        else:
            node = etree.SubElement(parent, tag, nsmap=nsmap)

        if value is not None:
            node.text = str(value)
        self._stack.append(node)
        return self

    def attr(self, name: str, value: Any) -> "Response":
        node = self.current
        if node is None:
            raise ValueError("No open element to set attribute on")
        node.set(self._qualify(name, node.nsmap, default=False), str(value))
        return self

    def end(self) -> "Response":
        if self._stack:
            self._stack.pop()
        return self

    def get_xml(self, pretty: bool = True) -> str:
        if self._root is None:
            raise ValueError("XML document has no root element")
        tree = self._root.getroottree()
        if self._stylesheet and self._root.getprevious() is None:
            self._root.addprevious(etree.PI("xml-stylesheet", f'type="text/xsl" href="{self._stylesheet}"'))
        body = etree.tostring(tree, pretty_print=pretty, encoding=self.encoding, xml_declaration=False)
        declaration = f'<?xml version="{self.version}" encoding="{self.encoding}"?>\n'
        return declaration + body.decode(self.encoding)

    @staticmethod
    def _qualify(name: str, scope: dict[str | None, str], *, default: bool) -> str:
        if ":" in name:
            prefix, local = name.split(":", 1)
            if prefix not in scope:
                raise ValueError(f"Undeclared namespace prefix: {prefix}")
            return f"{{{scope[prefix]}}}{local}"
        if default and scope.get(None):
            return f"{{{scope[None]}}}{name}"
        return name
