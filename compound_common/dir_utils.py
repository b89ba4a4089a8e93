import os
import re
from typing import List


class DirUtils:
    """
    Collection of static directory methods
    """

    @staticmethod
    def get_files_matching_pattern(directory: str, pattern: str) -> List[str]:
        """
        Get a sorted list of the files in a given directory whose names match a regular expression. Files that do not
        match, and subdirectories, are ignored.
        :param directory: Directory to search through.
        :param pattern: Regular expression the full file name must match.
        :return: List of absolute file paths, as strings, sorted by file name.
        """
        regex = re.compile(pattern)
        list_of_files = []
        for entry in os.scandir(directory):
            if entry.is_file() and regex.fullmatch(entry.name):
                list_of_files.append(entry.path)
        return sorted(list_of_files, key=os.path.basename)
