"""
Trace corpus loading.

Reads the per-trial directories written by a campaign back into pandas
DataFrames, tagging every row with the trial's seed and run.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

from .harness import DEFAULT_TRACE_FILES

logger = logging.getLogger(__name__)

TRIAL_DIRECTORY_PATTERN = re.compile(r"^seed(\d+)_run(\d+)$")


class TraceCorpus:
    """Collected traces under a campaign output root."""

    def __init__(self, output_root: str):
        self.output_root = Path(output_root)

    def trial_dirs(self) -> List[Tuple[int, int, Path]]:
        """(seed, run, directory) of every trial directory, sorted by seed then run."""
        if not self.output_root.is_dir():
            return []

        trials = []
        for entry in self.output_root.iterdir():
            match = TRIAL_DIRECTORY_PATTERN.match(entry.name)
            if match and entry.is_dir():
                trials.append((int(match.group(1)), int(match.group(2)), entry))
        return sorted(trials, key=lambda t: (t[0], t[1]))

    @staticmethod
    def read_trace(path: Path) -> pd.DataFrame:
        """
        Read one whitespace-separated trace file.

        The first line holds the column names, optionally prefixed by '%'.
        """
        with open(path) as f:
            header = f.readline()
            has_rows = any(line.strip() for line in f)

        columns = header.lstrip("%").split()
        if not has_rows:
            return pd.DataFrame(columns=columns)
        return pd.read_csv(path, sep=r"\s+", skiprows=1, names=columns, engine="python")

    def load(self, name: str) -> pd.DataFrame:
        """
        Concatenate one trace file across all trials.

        Args:
            name: Trace file name, e.g. 'DlDataSinr.txt'

        Returns:
            DataFrame with 'seed' and 'run' columns prepended
        """
        frames = []
        for seed, run, directory in self.trial_dirs():
            path = directory / name
            if not path.is_file():
                logger.debug(f"{name} missing in {directory.name}")
                continue
            frame = self.read_trace(path)
            frame.insert(0, 'run', run)
            frame.insert(0, 'seed', seed)
            frames.append(frame)

        if not frames:
            return pd.DataFrame(columns=['seed', 'run'])
        # header-only traces only contribute their columns
        frames = [frame for frame in frames if not frame.empty] or frames[:1]
        return pd.concat(frames, ignore_index=True)

    def summary(self, names: Optional[List[str]] = None) -> pd.DataFrame:
        """Presence of each trace file per trial."""
        names = list(names or DEFAULT_TRACE_FILES)
        rows = []
        for seed, run, directory in self.trial_dirs():
            row = {'seed': seed, 'run': run, 'trial': directory.name}
            for name in names:
                row[name] = (directory / name).is_file()
            row['complete'] = all(row[name] for name in names)
            rows.append(row)
        return pd.DataFrame(rows, columns=['seed', 'run', 'trial'] + names + ['complete'])
