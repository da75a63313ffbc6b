"""
终端交互

消歧选择和安装确认。读取标准输入是同步阻塞的，会暂停整个流程，
提示总是依次出现，不会与其他提示并发。
"""

import sys
from typing import Callable, List, Optional, Sequence

import click

from minebrew.models import SearchResult, Version

LINE_WIDTH = 80
CONFIRM_ANSWERS = ("y", "Y", "")


def _read_line() -> str:
    return sys.stdin.readline()


def format_queue(versions: Sequence[Version], width: int = LINE_WIDTH) -> str:
    """
    将待安装列表排成多行，每行文件名总长不超过 width

    每个文件名后跟两个空格，每行以制表符开头。
    """
    lines: List[str] = []
    current = ""
    chars_left = 0
    for version in versions:
        name = version.file().filename
        needed = len(name) + 2
        if needed <= chars_left:
            current += f"{name}  "
            chars_left -= needed
        else:
            if current:
                lines.append(current.rstrip())
            current = f"\t{name}  "
            chars_left = max(width - len(name), 0)
    if current:
        lines.append(current.rstrip())
    return f"Mods ({len(versions)})\n" + "\n".join(lines)


class Prompter:
    """交互式提示"""

    def __init__(
        self,
        reader: Optional[Callable[[], str]] = None,
        echo: Callable[..., None] = click.echo,
    ):
        self._read = reader or _read_line
        self._echo = echo

    def choose(self, query: str, hits: Sequence[SearchResult]) -> int:
        """
        列出候选项目并让用户选择

        Returns:
            选中项的下标（从 0 开始）；直接回车选择第一个
        """
        self._echo(f"\n'{query}' 有多个匹配结果:")
        for i, hit in enumerate(hits, start=1):
            self._echo(f"\t{i}) {hit.title}")
        self._echo("\n选择模组 (默认=1): ", nl=False)

        while True:
            answer = self._read().strip()
            if not answer:
                return 0
            try:
                choice = int(answer)
            except ValueError:
                choice = 0
            if 1 <= choice <= len(hits):
                return choice - 1
            self._echo("输入无效，请重试: ", nl=False, err=True)

    def confirm(self, versions: Sequence[Version]) -> bool:
        """展示待安装列表并确认，直接回车视为同意"""
        self._echo("\n" + format_queue(versions))
        self._echo("\n开始安装? [Y/n] ", nl=False)
        return self._read().strip() in CONFIRM_ANSWERS
