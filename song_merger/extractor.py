"""Extraction of BMS pack archives into Base and Append song roots."""

import os
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .fsops import delete_directory

PACK_PREFIX = "BeMusicSeeker difficulty tables BMS PACK"
APPEND_PREFIX = f"{PACK_PREFIX} APPEND"
BASE_DIR = "Base"
APPEND_DIR = "Append"


@dataclass
class ArchiveTask:
    """An archive and the directory it extracts into."""
    archive: Path
    output_dir: Path
    size: int


def _rar_files(folder: Path) -> list[Path]:
    return [p for p in folder.iterdir() if p.is_file() and p.name.endswith(".rar")]


def prepare_output_directories(output_dir: Path) -> tuple[Path, Path]:
    """Recreate empty Base and Append directories under output_dir."""
    roots = []
    for name in (BASE_DIR, APPEND_DIR):
        path = output_dir / name
        if path.exists():
            delete_directory(path)
        path.mkdir(parents=True)
        roots.append(path)
    return roots[0], roots[1]


def gather_archives(input_dir: Path, output_dir: Path) -> tuple[list[ArchiveTask], list[ArchiveTask]]:
    """
    Find pack archives under input_dir.

    Returns:
        Tuple of (song archive tasks, update archive tasks)
    """
    songs = []
    updates = []

    for pack in sorted(p for p in input_dir.iterdir() if p.is_dir()):
        if not pack.name.startswith(PACK_PREFIX):
            continue
        target = output_dir / (APPEND_DIR if pack.name.startswith(APPEND_PREFIX) else BASE_DIR)

        files = [p for p in pack.iterdir() if p.is_file()]
        if len(files) == 1 and files[0].name.endswith("update.rar"):
            updates.append(ArchiveTask(files[0], target, files[0].stat().st_size))
            subdirs = [p for p in pack.iterdir() if p.is_dir()]
            archives = []
            if len(subdirs) == 1 and subdirs[0].name.endswith("newsongs"):
                archives = _rar_files(subdirs[0])
        else:
            archives = _rar_files(pack)

        songs.extend(ArchiveTask(a, target, a.stat().st_size) for a in archives)

    songs.sort(key=lambda task: task.archive.name)
    return songs, updates


def extract_archive(task: ArchiveTask, seven_zip: str) -> bool:
    """Extract one archive with 7-Zip, overwriting existing files. Returns success."""
    completed = subprocess.run(
        [seven_zip, "x", str(task.archive), "-aoa", "-y", f"-o{task.output_dir}"],
        stdout=subprocess.DEVNULL
    )
    return completed.returncode == 0


def extract_archives(
    tasks: list[ArchiveTask],
    seven_zip: str = "7z",
    workers: Optional[int] = None,
    desc: str = "Extracting"
) -> list[ArchiveTask]:
    """
    Extract archives concurrently, one 7-Zip process per archive.

    At most ``workers`` processes run at once (default: CPU count).
    Returns the tasks whose extraction failed.
    """
    workers = workers or os.cpu_count() or 1
    failed = []
    total = sum(task.size for task in tasks)

    with ThreadPoolExecutor(max_workers=workers) as pool, \
            tqdm(total=total, desc=desc, unit="B", unit_scale=True) as pbar:
        futures = {pool.submit(extract_archive, task, seven_zip): task for task in tasks}
        for future in as_completed(futures):
            task = futures[future]
            try:
                ok = future.result()
            except OSError as e:
                tqdm.write(f"Extracting \"{task.archive}\" failed: {e}")
                ok = False
            else:
                if not ok:
                    tqdm.write(f"Extracting \"{task.archive}\" failed.")
            if not ok:
                failed.append(task)
            pbar.update(task.size)

    return failed


def format_gb(size: int) -> str:
    return f"{size / (1024 ** 3):.1f}GB"


def extract_packs(input_dir: Path, output_dir: Path, seven_zip: str = "7z",
                  workers: Optional[int] = None) -> list[ArchiveTask]:
    """Gather and extract all packs. Song archives finish before updates start."""
    print(f"Gathering archives from {input_dir}...")
    songs, updates = gather_archives(input_dir, output_dir)
    print(
        f"Found {len(songs)} ({format_gb(sum(t.size for t in songs))}) song archives and "
        f"{len(updates)} ({format_gb(sum(t.size for t in updates))}) update archives to process."
    )

    prepare_output_directories(output_dir)

    failed = extract_archives(songs, seven_zip, workers, desc="Songs")
    failed += extract_archives(updates, seven_zip, workers, desc="Updates")
    return failed
