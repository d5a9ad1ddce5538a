import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError

from argsearch.core.data_structures import Topic
from argsearch.core.exceptions import ResourceError

logger = logging.getLogger(__name__)


def load_topics(path: Union[str, Path]) -> List[Topic]:
    """
    Темы в формате Touché:
        <topics><topic><number>1</number><title>...</title></topic>...</topics>
    Прочие элементы темы (description, narrative) игнорируются.
    """
    path = Path(path)
    if not path.is_file():
        raise ResourceError(str(path), "topics file not found")

    try:
        root = ET.parse(path).getroot()
    except (OSError, ET.ParseError) as e:
        raise ResourceError(str(path), f"cannot parse topics: {e}") from e

    topics = []
    for element in root.iter("topic"):
        number = (element.findtext("number") or "").strip()
        title = (element.findtext("title") or "").strip()
        try:
            topics.append(Topic(number=number, title=title))
        except ValidationError as e:
            raise ResourceError(str(path), f"invalid topic {number or '?'}: {e}") from e

    logger.info(f"Loaded {len(topics)} topic(s) from {path.name}")
    return topics
