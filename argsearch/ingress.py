import time
import logging
import requests
from tqdm import tqdm
from pathlib import Path
from typing import Dict, Optional, Union

from argsearch.core.exceptions import ResourceError

logger = logging.getLogger(__name__)


class ResourceFetcher:
    """Загрузка словарей и стоп-листов (WordNet prolog, списки слов) в каталог ресурсов."""

    def __init__(self, resources_dir: Union[str, Path], max_retries: int = 3, chunk_size: int = 8192):
        self.resources_dir = Path(resources_dir)
        self.resources_dir.mkdir(parents=True, exist_ok=True)
        self.max_retries = max_retries
        self.chunk_size = chunk_size

    def _stream_to(self, url: str, target: Path) -> int:
        """Один проход загрузки во временный файл. Возвращает число байт."""
        written = 0
        with requests.get(url, stream=True, timeout=60) as response:
            response.raise_for_status()
            expected = int(response.headers.get('content-length', 0))

            with open(target, 'wb') as out, tqdm(desc=target.stem, total=expected, unit='iB',
                                                 unit_scale=True, unit_divisor=1024) as progress:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    written += out.write(chunk)
                    progress.update(len(chunk))
        return written

    def download_file(self, url: str, filename: Optional[str] = None) -> Path:
        """
        Скачивает файл с ретраями (экспоненциальная задержка на сетевых ошибках).
        Уже существующий файл не перекачивается, HTTP-ошибки не повторяются.
        """
        filename = filename or url.rsplit('/', 1)[-1]
        dest_path = self.resources_dir / filename
        if dest_path.exists():
            logger.info(f"Resource {filename} is already present. Skipping.")
            return dest_path

        dest_path.parent.mkdir(parents=True, exist_ok=True)
        # Недокачанный файл не должен выглядеть готовым
        part_path = dest_path.with_name(dest_path.name + ".part")

        attempt = 0
        while True:
            attempt += 1
            logger.info(f"Fetching {filename} from {url} (attempt {attempt}/{self.max_retries})")
            try:
                size = self._stream_to(url, part_path)
            except requests.HTTPError as e:
                raise ResourceError(filename, f"download failed: {e}") from e
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempt >= self.max_retries:
                    logger.error(f"Giving up on {url} after {attempt} attempts.")
                    raise ResourceError(filename, f"download failed: {e}") from e
                time.sleep(2 ** (attempt - 1))
                continue
            break

        part_path.replace(dest_path)
        logger.info(f"Saved {filename} ({size} bytes)")
        return dest_path

    def run(self, resources: Dict[str, str]) -> Dict[str, Path]:
        """имя файла -> URL; возвращает имя файла -> локальный путь."""
        return {filename: self.download_file(url, filename) for filename, url in resources.items()}
