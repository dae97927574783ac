"""
Campaign orchestration.

Sweeps the seed x run matrix, runs one trial per point and collects the
expected trace files of each trial into ``<output_root>/seed{N}_run{M}/``.

Every trial runs in a working directory it owns exclusively: a fresh scratch
directory per trial (isolated workspace, the default, which also allows a
bounded worker pool) or one shared directory used strictly sequentially
(shared workspace). Files are always collected by exact expected name.
"""

import json
import logging
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pandas as pd

from ..core.config import CampaignConfig, RunSpec
from ..core.errors import CollectionWarning, ConfigurationError, EngineFailure
from .engine import SimulationEngine, create_engine
from .harness import TraceFileSet
from .trial import TRIAL_CONFIG_FILE, TrialBuilder, TrialSetup

logger = logging.getLogger(__name__)

WORKSPACE_MODES = ("isolated", "shared")
CONFIGURATION_ERROR_POLICIES = ("abort", "skip")
SCRATCH_DIRECTORY = ".scratch"
SHARED_DIRECTORY = ".work"


class TrialStatus(Enum):
    """Outcome of a trial."""
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TrialResult:
    """Collection outcome of one trial."""
    run_spec: RunSpec
    status: TrialStatus
    directory: Optional[str] = None
    collected: Tuple[str, ...] = ()
    missing: Tuple[str, ...] = ()
    error: Optional[str] = None
    warnings: Tuple[CollectionWarning, ...] = ()


class CampaignResult:
    """Trial results of a campaign, in seed x run row-major order."""

    def __init__(self):
        self.trials: Dict[RunSpec, TrialResult] = {}

    def record(self, result: TrialResult):
        """Record a trial result. A recorded trial is never replaced."""
        if result.run_spec in self.trials:
            raise ValueError(f"Trial {result.run_spec.trial_name} already recorded")
        self.trials[result.run_spec] = result

    def __getitem__(self, run_spec: RunSpec) -> TrialResult:
        return self.trials[run_spec]

    def __contains__(self, run_spec) -> bool:
        return run_spec in self.trials

    def __iter__(self) -> Iterator[RunSpec]:
        return iter(self.trials)

    def __len__(self) -> int:
        return len(self.trials)

    def _with_status(self, status: TrialStatus) -> List[TrialResult]:
        return [r for r in self.trials.values() if r.status == status]

    @property
    def complete(self) -> List[TrialResult]:
        return self._with_status(TrialStatus.COMPLETE)

    @property
    def incomplete(self) -> List[TrialResult]:
        return self._with_status(TrialStatus.INCOMPLETE)

    @property
    def failed(self) -> List[TrialResult]:
        return self._with_status(TrialStatus.FAILED)

    @property
    def skipped(self) -> List[TrialResult]:
        return self._with_status(TrialStatus.SKIPPED)

    @property
    def collection_warnings(self) -> List[CollectionWarning]:
        return [w for r in self.trials.values() for w in r.warnings]

    def summary(self) -> Dict[str, Any]:
        return {
            'total_trials': len(self.trials),
            'complete': len(self.complete),
            'incomplete': len(self.incomplete),
            'failed': len(self.failed),
            'skipped': len(self.skipped),
            'missing_files': len(self.collection_warnings),
        }

    def to_dataframe(self) -> pd.DataFrame:
        """One row per trial."""
        rows = []
        for spec, result in self.trials.items():
            rows.append({
                'seed': spec.seed,
                'run': spec.run,
                'trial': spec.trial_name,
                'channel_model': spec.channel_model,
                'channel_condition': spec.channel_condition,
                'status': result.status.value,
                'directory': result.directory,
                'collected': len(result.collected),
                'missing': ";".join(result.missing),
                'error': result.error,
            })
        return pd.DataFrame(rows, columns=['seed', 'run', 'trial', 'channel_model', 'channel_condition',
                                           'status', 'directory', 'collected', 'missing', 'error'])

    def export(self, output_file: str):
        """Export the trial table to CSV or JSON."""
        if output_file.endswith('.csv'):
            self.to_dataframe().to_csv(output_file, index=False)
        elif output_file.endswith('.json'):
            export_data = {
                'summary': self.summary(),
                'trials': self.to_dataframe().to_dict(orient='records'),
            }
            with open(output_file, 'w') as f:
                json.dump(export_data, f, indent=2, default=str)
        else:
            raise ValueError(f"Unsupported file format: {output_file}")


@dataclass
class PlannedTrial:
    """A RunSpec with either its setup or its early outcome."""
    run_spec: RunSpec
    setup: Optional[TrialSetup] = None
    outcome: Optional[TrialResult] = None


class CampaignOrchestrator:
    """Runs every (seed, run) trial of a campaign and collects its traces."""

    def __init__(self, config: CampaignConfig, engine: Optional[SimulationEngine] = None):
        self._validate(config)
        self.config = config
        self.engine = engine or create_engine(config.engine, config.ns3_path, config.ns3_program)
        self.output_root = Path(config.output_root)
        self.trace_files = TraceFileSet.from_names(config.trace_files)
        self.trial_builder = TrialBuilder(config.scenario)

        if config.working_directory:
            self.shared_directory = Path(config.working_directory)
        else:
            self.shared_directory = self.output_root / SHARED_DIRECTORY

    @staticmethod
    def _validate(config: CampaignConfig):
        if config.workspace not in WORKSPACE_MODES:
            raise ConfigurationError("workspace", config.workspace, WORKSPACE_MODES)
        if config.on_configuration_error not in CONFIGURATION_ERROR_POLICIES:
            raise ConfigurationError("on_configuration_error", config.on_configuration_error,
                                     CONFIGURATION_ERROR_POLICIES)
        if config.max_workers < 1:
            raise ConfigurationError("max_workers", config.max_workers, ["integer >= 1"])
        if config.workspace == "shared" and config.max_workers > 1:
            raise ConfigurationError("max_workers", config.max_workers, ["1"],
                                     "A shared working directory runs trials sequentially")
        if config.start_seed < 0:
            raise ConfigurationError("start_seed", config.start_seed, ["integer >= 0"],
                                     "Simulator seeds are unsigned")
        if config.runs_per_seed < 0:
            raise ConfigurationError("runs_per_seed", config.runs_per_seed, ["integer >= 0"])

    def run_specs(self) -> List[RunSpec]:
        """Seed x run matrix in row-major order; runs are numbered from 1."""
        return [
            RunSpec.from_scenario(self.config.scenario, seed, run)
            for seed in range(self.config.start_seed, self.config.end_seed)
            for run in range(1, self.config.runs_per_seed + 1)
        ]

    def plan(self) -> List[PlannedTrial]:
        """
        Configure every trial before any of them runs.

        Raises:
            ConfigurationError: Under the 'abort' policy, on the first invalid trial
        """
        planned = []
        for spec in self.run_specs():
            try:
                planned.append(PlannedTrial(spec, setup=self.trial_builder.build(spec)))
            except ConfigurationError as e:
                if self.config.on_configuration_error == "abort":
                    logger.error(f"Configuration error in trial {spec.trial_name}: {e}")
                    raise
                logger.warning(f"Skipping trial {spec.trial_name}: {e}")
                planned.append(PlannedTrial(spec, outcome=TrialResult(
                    spec, TrialStatus.SKIPPED, error=str(e))))
            except EngineFailure as e:
                logger.error(f"Trial {spec.trial_name} cannot be set up: {e}")
                planned.append(PlannedTrial(spec, outcome=TrialResult(
                    spec, TrialStatus.FAILED, error=str(e))))
        return planned

    def run(self) -> CampaignResult:
        """
        Run the campaign.

        Returns:
            CampaignResult with one entry per (seed, run)

        Raises:
            ConfigurationError: Under the 'abort' policy, before any trial runs
        """
        planned = self.plan()
        self.output_root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Campaign: {len(planned)} trials, seeds [{self.config.start_seed}, "
                    f"{self.config.end_seed}), {self.config.runs_per_seed} runs per seed, "
                    f"{self.config.workspace} workspace")

        result = CampaignResult()
        if self.config.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                futures = [executor.submit(self._run_planned, trial) for trial in planned]
                for future in futures:
                    result.record(future.result())
        else:
            for trial in planned:
                result.record(self._run_planned(trial))

        logger.info(f"Campaign finished: {result.summary()}")
        return result

    def _run_planned(self, trial: PlannedTrial) -> TrialResult:
        if trial.outcome is not None:
            return trial.outcome

        spec = trial.run_spec
        logger.info(f">>> Running SEED={spec.seed}, RUN={spec.run}")
        if self.config.workspace == "shared":
            return self._run_in_shared_directory(trial.setup)
        return self._run_in_scratch_directory(trial.setup)

    def _run_in_scratch_directory(self, setup: TrialSetup) -> TrialResult:
        scratch_root = self.output_root / SCRATCH_DIRECTORY
        scratch_root.mkdir(parents=True, exist_ok=True)
        working_directory = Path(tempfile.mkdtemp(prefix=f"{setup.trial_name}-", dir=scratch_root))
        try:
            return self._execute(setup, working_directory)
        finally:
            shutil.rmtree(working_directory, ignore_errors=True)

    def _run_in_shared_directory(self, setup: TrialSetup) -> TrialResult:
        self.shared_directory.mkdir(parents=True, exist_ok=True)
        self._drain(self.shared_directory)
        return self._execute(setup, self.shared_directory)

    def _drain(self, working_directory: Path):
        """Remove expected output files left over by an earlier run."""
        for name in list(self.trace_files) + [TRIAL_CONFIG_FILE]:
            stale = working_directory / name
            if stale.is_file():
                stale.unlink()
                logger.warning(f"  Removed stale {name} from {working_directory}")

    def _execute(self, setup: TrialSetup, working_directory: Path) -> TrialResult:
        try:
            self.engine.run(setup, working_directory)
        except EngineFailure as e:
            logger.error(f"Trial {setup.trial_name} failed: {e}")
            return TrialResult(setup.run_spec, TrialStatus.FAILED, error=str(e))
        return self.collect(setup.run_spec, working_directory)

    def collect(self, spec: RunSpec, working_directory: Path) -> TrialResult:
        """
        Move the expected trace files of a trial into its directory.

        The trial descriptor travels along when the engine wrote one; it
        never counts as a collected or missing trace.

        Args:
            spec: Trial identity
            working_directory: Directory the engine wrote into

        Returns:
            TrialResult listing collected and missing files
        """
        trial_directory = self.output_root / spec.trial_name
        trial_directory.mkdir(parents=True, exist_ok=True)

        collected = []
        missing = []
        warnings = []
        for name in self.trace_files:
            source = Path(working_directory) / name
            destination = trial_directory / name
            if source.is_file():
                shutil.move(str(source), str(destination))
                collected.append(name)
                logger.info(f"  Moved {name} to {trial_directory}/")
            else:
                if destination.is_file():
                    # leftover of an earlier campaign over the same trial
                    destination.unlink()
                warning = CollectionWarning(spec.trial_name, name)
                logger.warning(f"  Warning: {warning}")
                missing.append(name)
                warnings.append(warning)

        descriptor = Path(working_directory) / TRIAL_CONFIG_FILE
        if descriptor.is_file():
            shutil.move(str(descriptor), str(trial_directory / TRIAL_CONFIG_FILE))
        elif (trial_directory / TRIAL_CONFIG_FILE).is_file():
            (trial_directory / TRIAL_CONFIG_FILE).unlink()

        status = TrialStatus.INCOMPLETE if missing else TrialStatus.COMPLETE
        return TrialResult(
            run_spec=spec,
            status=status,
            directory=str(trial_directory),
            collected=tuple(collected),
            missing=tuple(missing),
            warnings=tuple(warnings)
        )
