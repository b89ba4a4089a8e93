import xml.etree.ElementTree as ET
from typing import Dict, Optional


class XmlDocumentUtils:
    """
    Collection of static XML utility methods.
    """

    @staticmethod
    def leaf_children_to_dict(element: ET.Element) -> Dict[str, str]:
        """
        Return the direct children of an element that have no children of their own as a tag: text dict. Children that
        are empty, whitespace only or flagged nil="true" are left out, as are any children with nested elements.
        :param element: XML element, usually the document root.
        :return: dict of tag to stripped text.
        """
        result = {}
        for child in element:
            if len(child) > 0 or child.get("nil") == "true":
                continue
            text = XmlDocumentUtils.clean_text(child.text)
            if text is not None:
                result[child.tag] = text
        return result

    @staticmethod
    def child_text(element: ET.Element, tag: str) -> Optional[str]:
        """
        Get the stripped text of the first child of an element with a given tag.
        :param element: Parent XML element.
        :param tag: Tag of the child to find.
        :return: Stripped text, or None if the child is missing or empty.
        """
        child = element.find(tag)
        return XmlDocumentUtils.clean_text(child.text) if child is not None else None

    @staticmethod
    def clean_text(text: Optional[str]) -> Optional[str]:
        if text is None:
            return None
        text = text.strip()
        return text if text else None
