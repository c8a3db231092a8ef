"""
Song Merger - A CLI tool to merge extracted song folders into a bucketed songs folder.

Features:
- Title buckets by first character (A-Z, 0-9, hiragana, katakana, kanji, others)
- Recursive source/destination tree comparison
- Automatic conflict resolution through an ordered rule table
- Unsafe conflicts are left untouched and reported for manual merging
- Parallel archive extraction with progress visualization
"""

__version__ = "1.0.0"
