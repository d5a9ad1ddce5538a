"""
Словари для инъекции альтернатив: синонимы WordNet, категории слов, списки стоп-слов.

Все таблицы неизменяемы после построения и читаются из рабочих потоков без блокировок.
Построение идет через LexiconRegistry: первый запрос строит таблицу, остальные
ждут и переиспользуют результат.
"""
import logging
import re
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from argsearch.core.exceptions import ResourceError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# s(100001740,1,'entity',n,1,11).  -- апостроф внутри слова экранируется как ''
_WN_SYNONYM_RE = re.compile(r"^s\((\d+),\d+,'((?:[^']|'')*)',")
_CATEGORY_WORD_RE = re.compile(r"[^\W_]+")


class SynonymMap(Mapping[str, Tuple[str, ...]]):
    """терм -> кортеж синонимов (порядок как в исходном ресурсе, включая сам терм)."""

    def __init__(self, entries: Mapping[str, Iterable[str]]):
        self._entries = MappingProxyType({term: tuple(values) for term, values in entries.items()})

    def lookup(self, term: str) -> Tuple[str, ...]:
        return self._entries.get(term, ())

    def __getitem__(self, term: str) -> Tuple[str, ...]:
        return self._entries[term]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class CategoryMap(Mapping[str, str]):
    """терм -> категория (например, 'cat' -> 'animal')."""

    def __init__(self, entries: Mapping[str, str]):
        self._entries = MappingProxyType(dict(entries))

    def lookup(self, term: str) -> Optional[str]:
        return self._entries.get(term)

    def __getitem__(self, term: str) -> str:
        return self._entries[term]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def parse_wordnet_synonyms(lines: Iterable[str]) -> SynonymMap:
    """
    Разбор WordNet prolog (wn_s.pl).
    Все слова одного синсета становятся синонимами друг друга;
    в качестве синонимов берутся только однословные записи.
    """
    synsets: Dict[str, List[str]] = {}

    for line_no, raw_line in enumerate(lines, 1):
        line = raw_line.strip()
        if not line:
            continue
        match = _WN_SYNONYM_RE.match(line)
        if match is None:
            raise ValueError(f"Malformed WordNet line {line_no}: {line[:80]}")
        synset_id = match.group(1)
        word = match.group(2).replace("''", "'")
        synsets.setdefault(synset_id, []).append(word)

    entries: Dict[str, List[str]] = {}
    for words in synsets.values():
        single_words = [w for w in words if " " not in w]
        for word in words:
            bucket = entries.setdefault(word, [])
            for synonym in single_words:
                if synonym not in bucket:
                    bucket.append(synonym)

    return SynonymMap(entries)


def parse_category_line(line: str) -> List[str]:
    """Слова (буквы/цифры) до первого '@' в строке лексикографического файла."""
    return _CATEGORY_WORD_RE.findall(line.split("@", 1)[0])


def load_synonyms(path: PathLike) -> SynonymMap:
    path = Path(path)
    if not path.is_file():
        raise ResourceError(str(path), "file not found")
    try:
        with open(path, "r", encoding="utf-8") as f:
            synonyms = parse_wordnet_synonyms(f)
    except (OSError, ValueError) as e:
        raise ResourceError(str(path), str(e)) from e

    logger.info(f"Loaded synonyms for {len(synonyms)} terms from {path.name}")
    return synonyms


def load_categories(path: PathLike) -> CategoryMap:
    """
    Каталог файлов вида '<pos>.<category>' (например, noun.animal).
    При повторе слова побеждает файл, идущий позже по имени.
    """
    path = Path(path)
    if not path.is_dir():
        raise ResourceError(str(path), "directory not found")

    entries: Dict[str, str] = {}
    try:
        for file_path in sorted(p for p in path.iterdir() if p.is_file()):
            parts = file_path.name.split(".")
            if len(parts) < 2:
                logger.warning(f"File {file_path.name} has no category suffix. Skipping.")
                continue
            category = parts[1]
            with open(file_path, "r", encoding="utf-8") as f:
                for line in f:
                    for word in parse_category_line(line):
                        entries[word] = category
    except OSError as e:
        raise ResourceError(str(path), str(e)) from e

    logger.info(f"Loaded {len(entries)} categorized words from {path}")
    return CategoryMap(entries)


def load_word_list(path: PathLike) -> FrozenSet[str]:
    """Список слов по одному на строку; пустые строки и '#'-комментарии пропускаются."""
    path = Path(path)
    if not path.is_file():
        raise ResourceError(str(path), "file not found")
    try:
        with open(path, "r", encoding="utf-8") as f:
            words = {line.strip() for line in f}
    except OSError as e:
        raise ResourceError(str(path), str(e)) from e

    return frozenset(w for w in words if w and not w.startswith("#"))


class LexiconRegistry:
    """
    Явный реестр словарей вместо глобальных статиков.
    Создается один раз на процесс и передается в анализаторы.
    """

    def __init__(self):
        self._cache: Dict[Tuple[str, str], Any] = {}
        self._lock = threading.Lock()

    def get_or_build(self, kind: str, path: PathLike, builder: Callable[[PathLike], Any], reuse: bool = True) -> Any:
        """
        reuse=True: построить один раз и переиспользовать (конкурентные вызовы ждут первую сборку).
        reuse=False: собрать заново для вызывающего, не трогая кэш.
        """
        if not reuse:
            return builder(path)

        key = (kind, str(Path(path).resolve()))
        with self._lock:
            if key not in self._cache:
                logger.info(f"Building {kind} lexicon from {path}...")
                self._cache[key] = builder(path)
            return self._cache[key]

    def synonyms(self, path: PathLike, reuse: bool = True) -> SynonymMap:
        return self.get_or_build("synonyms", path, load_synonyms, reuse)

    def categories(self, path: PathLike, reuse: bool = True) -> CategoryMap:
        return self.get_or_build("categories", path, load_categories, reuse)

    def word_list(self, path: PathLike, reuse: bool = True) -> FrozenSet[str]:
        return self.get_or_build("words", path, load_word_list, reuse)

    def __len__(self) -> int:
        return len(self._cache)
