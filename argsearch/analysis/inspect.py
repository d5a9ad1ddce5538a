"""Диагностика: печать потока токенов и экспорт в CoNLL-U."""
import logging
from typing import Dict, List, Optional

from conllu.models import Token as ConlluToken, TokenList
from rich.console import Console
from rich.table import Table

from argsearch.core.data_structures import Token
from argsearch.core.interfaces import TokenStream

logger = logging.getLogger(__name__)


def consume_token_stream(stream: TokenStream, title: str = "Token stream",
                         console: Optional[Console] = None) -> List[Token]:
    """Прогоняет поток целиком и печатает все атрибуты каждого токена."""
    console = console or Console()

    table = Table(title=title)
    table.add_column("#", style="dim")
    table.add_column("Term", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("PosInc", justify="right")
    table.add_column("PosLen", justify="right")
    table.add_column("Offsets")
    table.add_column("Flags", justify="right")
    table.add_column("Keyword")

    tokens = []
    with stream:
        stream.reset()
        for i, token in enumerate(stream):
            tokens.append(token)
            # Альтернативы визуально сдвинуты под основной токен
            term = token.text if token.position_increment > 0 else f"  ↳ {token.text}"
            table.add_row(
                str(i),
                term,
                token.type or "",
                str(token.position_increment),
                str(token.position_length),
                f"{token.start_offset}-{token.end_offset}",
                str(token.flags),
                "✓" if token.is_keyword else "",
            )
        stream.end()

    console.print(table)
    return tokens


def to_conllu(tokens: List[Token], metadata: Optional[Dict[str, str]] = None) -> str:
    """
    Экспорт проанализированного потока в CoNLL-U.
    Альтернативы (инкремент 0) уходят в MISC основного токена как Alt=...
    """
    rows: List[ConlluToken] = []
    for token in tokens:
        if token.is_alternative and rows:
            misc = rows[-1]["misc"]
            misc["Alt"] = f"{misc['Alt']},{token.text}" if "Alt" in misc else token.text
            continue

        rows.append(ConlluToken({
            "id": len(rows) + 1,
            "form": token.text,
            "lemma": "_",
            "upos": "_",
            "xpos": token.type or "_",
            "feats": None,
            "head": None,
            "deprel": "_",
            "deps": None,
            "misc": {"Offsets": f"{token.start_offset}-{token.end_offset}",
                     "PosLen": str(token.position_length)},
        }))

    return TokenList(rows, metadata or {}).serialize()
