# argsearch/index/parser.py
import json
import logging
from pathlib import Path
from typing import Callable, Dict, Iterator, Union

from argsearch.core.data_structures import ParsedDocument
from argsearch.core.exceptions import ConfigurationError, ResourceError

logger = logging.getLogger(__name__)


class ArgsMeParser:
    """
    Документы коллекции args.me:
        {"arguments": [{"id": ..., "premises": [{"text": ...}, ...],
                        "context": {"sourceDomain": ..., "discussionTitle": ...}}, ...]}
    Тело документа = тексты всех premises через пробел.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __iter__(self) -> Iterator[ParsedDocument]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ResourceError(str(self.path), f"cannot read documents: {e}") from e

        arguments = data.get("arguments") if isinstance(data, dict) else None
        if not isinstance(arguments, list):
            raise ResourceError(str(self.path), "'arguments' should be an array")

        for i, argument in enumerate(arguments):
            if not isinstance(argument, dict):
                raise ResourceError(str(self.path), f"argument #{i} should be an object")

            doc_id = argument.get("id")
            if not doc_id:
                raise ResourceError(str(self.path), f"argument #{i} has no valid id")

            context = argument.get("context") or {}
            premises = argument.get("premises") or []
            body = " ".join(p["text"] for p in premises if isinstance(p, dict) and p.get("text"))

            if not body.strip():
                logger.warning(f"Document {doc_id} in {self.path.name} has an empty body. Skipping.")
                continue

            yield ParsedDocument(
                id=str(doc_id),
                title=context.get("discussionTitle") or "",
                body=body,
                domain=context.get("sourceDomain") or ""
            )


# Имя парсера в конфиге -> фабрика
PARSERS: Dict[str, Callable[[Union[str, Path]], ArgsMeParser]] = {
    "task1parser": ArgsMeParser,
    "argsme": ArgsMeParser,
}


def get_parser(name: str) -> Callable[[Union[str, Path]], ArgsMeParser]:
    try:
        return PARSERS[name.lower()]
    except KeyError:
        raise ConfigurationError(f"Unknown document parser '{name}'. Available: {sorted(PARSERS)}") from None
