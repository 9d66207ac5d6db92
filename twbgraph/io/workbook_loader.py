"""
Loader for Tableau workbook files (.twb)
"""

import logging
from pathlib import Path
from typing import List

from lxml import etree

from twbgraph.core.models import WorkbookLoadError, ValidationError

logger = logging.getLogger(__name__)


class WorkbookLoader:
    """Finds .twb files and parses them into element trees"""

    def __init__(self, path: str, extension: str = "twb"):
        """
        Initialize the loader

        Args:
            path: A workbook file or a directory containing workbooks
            extension: Workbook file extension (default: "twb")
        """
        self.path = path
        self.extension = extension.lstrip(".") if extension else extension

    def find_workbooks(self) -> List[Path]:
        """
        Workbook files under the configured path

        Returns:
            Sorted list of workbook paths

        Raises:
            WorkbookLoadError: If the path does not exist or holds no workbook
            ValidationError: If the extension is empty
        """
        if not self.extension or not self.extension.strip():
            raise ValidationError("File extension cannot be empty")

        root = Path(self.path)
        if not root.exists():
            raise WorkbookLoadError(f"Path not found: {self.path}")

        if root.is_file():
            return [root]

        workbooks = sorted(root.rglob(f"*.{self.extension}"))
        if not workbooks:
            raise WorkbookLoadError(f"No .{self.extension} file found in {self.path}")

        logger.info(f"Found {len(workbooks)} workbooks in {self.path}")
        return workbooks

    @staticmethod
    def load_tree(file_path: Path):
        """
        Parse a workbook file

        Args:
            file_path: Path of a .twb file

        Returns:
            Root element of the workbook

        Raises:
            WorkbookLoadError: If the file cannot be read or parsed
        """
        parser = etree.XMLParser(huge_tree=True, remove_comments=True)
        try:
            tree = etree.parse(str(file_path), parser)
        except OSError as e:
            logger.error(f"Error reading {file_path}: {e}")
            raise WorkbookLoadError(f"Error reading workbook {file_path}: {e}")
        except etree.XMLSyntaxError as e:
            logger.error(f"Error parsing {file_path}: {e}")
            raise WorkbookLoadError(f"Error parsing workbook {file_path}: {e}")

        logger.debug(f"Loaded workbook: {Path(file_path).name}")
        return tree.getroot()
