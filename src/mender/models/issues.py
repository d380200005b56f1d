"""課題ツリー（メッセージ → ファイル → Incident）のデータモデル。

ノードはフラットな配列に格納し、親子関係はインデックスで表現する。
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from mender.models.analysis import Incident

NodeKind = Literal["group", "file", "incident"]


class IssueNode(BaseModel):
    """課題ツリーのノード。kindで種類を区別する。"""

    model_config = ConfigDict(frozen=True)

    kind: NodeKind
    index: int
    parent: int | None = None
    children: tuple[int, ...] = ()
    message: str
    uri: str | None = None
    incident: Incident | None = None

    @property
    def line_number(self) -> int | None:
        return self.incident.line_number if self.incident is not None else None


class Location(BaseModel):
    """エディタ上の位置（行は0始まり）。"""

    model_config = ConfigDict(frozen=True)

    uri: str
    line: int


class IssueTree(BaseModel):
    """グループ化・整列済みの課題ツリー。"""

    model_config = ConfigDict(frozen=True)

    nodes: tuple[IssueNode, ...] = ()
    roots: tuple[int, ...] = ()

    def node(self, index: int) -> IssueNode:
        return self.nodes[index]

    def children(self, index: int | None = None) -> list[IssueNode]:
        """子ノードを返す。indexがNoneの場合はトップレベルのグループを返す。"""
        indices = self.roots if index is None else self.nodes[index].children
        return [self.nodes[i] for i in indices]

    def parent(self, index: int) -> IssueNode | None:
        parent_index = self.nodes[index].parent
        return None if parent_index is None else self.nodes[parent_index]

    def find_group(self, message: str) -> IssueNode | None:
        for i in self.roots:
            if self.nodes[i].message == message:
                return self.nodes[i]
        return None

    def find_file(self, message: str, uri: str) -> IssueNode | None:
        group = self.find_group(message)
        if group is None:
            return None
        for i in group.children:
            if self.nodes[i].uri == uri:
                return self.nodes[i]
        return None

    def location(self, index: int) -> Location | None:
        """ノードの位置を返す。

        ファイルノードは先頭のIncidentの位置、グループノードは位置を持たない。
        """
        node = self.nodes[index]
        if node.kind == "incident" and node.incident is not None:
            return Location(uri=node.incident.uri, line=max(node.incident.line_number - 1, 0))
        if node.kind == "file" and node.uri is not None:
            if node.children:
                return self.location(node.children[0])
            return Location(uri=node.uri, line=0)
        return None

    def count_incidents(self) -> int:
        return sum(1 for n in self.nodes if n.kind == "incident")

    def count_files(self) -> int:
        return len({n.uri for n in self.nodes if n.kind == "file"})

    @property
    def label(self) -> str:
        """件数とファイル数を表すラベル。"""
        if not self.roots:
            return "No results."
        incidents = self.count_incidents()
        files = self.count_files()
        result_word = "result" if incidents == 1 else "results"
        file_word = "file" if files == 1 else "files"
        return f"{incidents} {result_word} in {files} {file_word}"

    @property
    def badge(self) -> str | None:
        incidents = self.count_incidents()
        return f"{incidents} incident(s) found" if incidents else None
