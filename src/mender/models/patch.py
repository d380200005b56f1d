"""unified diffの構造表現。"""

from pydantic import BaseModel, Field


class Hunk(BaseModel):
    """1つのハンク。linesは先頭の記号（' ', '-', '+', '\\'）を含む。"""

    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    section: str = ""
    lines: list[str] = Field(default_factory=list)

    def old_side(self) -> list[str]:
        return [line[1:] for line in self.lines if line[:1] in (" ", "-")]

    def new_side(self) -> list[str]:
        return [line[1:] for line in self.lines if line[:1] in (" ", "+")]

    def _missing_newline_after(self, markers: tuple[str, ...]) -> bool:
        previous = ""
        for line in self.lines:
            if line.startswith("\\"):
                if previous[:1] in markers:
                    return True
            else:
                previous = line
        return False

    @property
    def old_missing_newline(self) -> bool:
        return self._missing_newline_after((" ", "-"))

    @property
    def new_missing_newline(self) -> bool:
        return self._missing_newline_after((" ", "+"))


class FilePatch(BaseModel):
    """1ファイル分のパッチ。ファイル名は a/, b/ 接頭辞を含むヘッダーの値そのまま。"""

    old_name: str | None = None
    new_name: str | None = None
    header: list[str] = Field(default_factory=list)
    hunks: list[Hunk] = Field(default_factory=list)

    @staticmethod
    def _strip(name: str | None, prefix: str) -> str | None:
        if name is None or name == "/dev/null":
            return None
        return name[len(prefix) :] if name.startswith(prefix) else name

    @property
    def old_path(self) -> str | None:
        return self._strip(self.old_name, "a/")

    @property
    def new_path(self) -> str | None:
        return self._strip(self.new_name, "b/")

    @property
    def is_in_place_modification(self) -> bool:
        """a/ と b/ の接頭辞を持ち、接頭辞を除いた名前が同じ（追加・削除・リネームでない）か。"""
        return (
            self.old_name is not None
            and self.new_name is not None
            and self.old_name.startswith("a/")
            and self.new_name.startswith("b/")
            and len(self.old_name) > 2
            and self.old_name[2:] == self.new_name[2:]
        )
