from __future__ import annotations
import logging
from pathlib import Path
from repo_spider.application.sanitizer import quote_identifier, sanitize_description
from repo_spider.domain.entities import ExportError, Repository
from repo_spider.domain.interfaces import IRepoExporter

log = logging.getLogger(__name__)

# Repository name, GitHub URL, stars, forks, description
HEADER = ("仓库名称", "GitHub地址", "Star数量", "Fork数量", "仓库说明")
DELIMITER = ","
LINE_END = "\n"
# utf-8-sig writes the byte-order mark so Excel detects UTF-8
ENCODING = "utf-8-sig"


def format_row(repo: Repository) -> str:
    """Exactly five fields: name, url, stars, forks, description."""
    return DELIMITER.join((
        quote_identifier(repo.full_name),
        repo.html_url,
        str(repo.star_count),
        str(repo.fork_count),
        sanitize_description(repo.description),
    ))


class CsvExporter(IRepoExporter):
    """
    Concrete implementation of IRepoExporter writing a spreadsheet-safe CSV.

    The whole file is rewritten on every call; an empty list still
    produces a file holding just the header line.
    """

    def export(self, repos: list[Repository], filename: str | Path) -> Path:
        path = Path(filename)
        log.info("Writing %d rows to %s …", len(repos), path)

        try:
            if path.parent != Path():
                path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding=ENCODING, errors="replace", newline="") as f:
                f.write(DELIMITER.join(HEADER) + LINE_END)
                for repo in repos:
                    f.write(format_row(repo) + LINE_END)
        except (OSError, UnicodeError) as exc:
            log.error("Failed to write CSV report to %s: %s", path, exc)
            raise ExportError(f"could not write {path}: {exc}") from exc

        log.info("Export complete: %s (%d rows)", path, len(repos))
        return path
