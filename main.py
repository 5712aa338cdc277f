import sys
from pathlib import Path

from insightstore import get_import_summary, import_file
from insightstore.logger import setup_logger

logger = setup_logger("insightstore")


def run_import(file_path: str) -> int:
    """Import one CSV/Excel file from disk and print the summary."""
    path = Path(file_path)
    if not path.exists():
        logger.error(f"Arquivo não encontrado: {path}")
        return 1

    result = import_file(path.read_bytes(), path.name)
    summary = get_import_summary(result)

    if not summary["success"]:
        logger.error(f"❌ {summary['message']}")
        return 1

    details = summary["details"]
    logger.info(f"✅ {summary['message']}")
    logger.info(f"Colunas detectadas: {', '.join(details['observed_columns'])}")
    for sample in details["rejected_samples"]:
        logger.info(f"  - linha {sample['row']} ignorada: {sample['fields']}")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Uso: python main.py <arquivo.csv|arquivo.xlsx>")
        sys.exit(2)
    sys.exit(run_import(sys.argv[1]))
