"""
Shapes of the data passed between pipeline stages.

Everything is a plain dict or tuple at runtime; these declarations exist for
readers and type checkers. List positions are identities: file index ``i``
and abstraction index ``j`` mean the same entity for the whole run, so no
stage may re-sort or filter these lists after they are produced.
"""

from typing import List, Tuple, TypedDict

# (path, content) as returned by the crawlers; index in the list is the file index
FetchedFile = Tuple[str, str]


class Abstraction(TypedDict):
    name: str
    description: str
    file_indices: List[int]


Relationship = TypedDict("Relationship", {"from": int, "to": int, "label": str})


class ProjectAnalysis(TypedDict):
    summary: str
    relationships: List[Relationship]


class ChapterLinkInfo(TypedDict):
    num: int
    name: str
    filename: str


class ChapterOutput(TypedDict):
    chapter_number: int
    abstraction_index: int
    title: str
    content: str
    filename: str
