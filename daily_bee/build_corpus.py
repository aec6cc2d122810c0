"""
Download and cache the large word list used to upgrade the dictionary.
Run once (or to refresh, after deleting data/corpus.txt): python -m daily_bee.build_corpus
"""
import logging

from .config import Settings
from .corpus import ensure_corpus, load_corpus_cache


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = Settings.from_env()
    settings.ensure_data_dir()
    print("Fetching word list...")
    try:
        path = ensure_corpus(
            settings.corpus_cache_path, settings.corpus_urls, timeout=max(settings.corpus_timeout, 30.0)
        )
    except FileNotFoundError as e:
        print(f"  {e}")
        print("  The bundled fallback list will be used.")
        return
    words = load_corpus_cache(path)
    print(f"  {len(words)} words")
    print(f"Saved to {path}")


if __name__ == "__main__":
    main()
