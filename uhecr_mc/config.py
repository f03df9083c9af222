"""
YAML configuration of a propagation pipeline.

Energies are given in EeV, lengths in Mpc. Example:

    max_step: 1.0
    photon_fields: [CMB]
    modules:
      - type: Redshift
      - type: ElectronPairProduction
      - type: MinimumEnergy
        min_energy: 1.0
      - type: MaximumTrajectoryLength
        max_length: 100.0
        observers: [[0.0, 0.0, 0.0]]
        record: true

Any break condition accepts 'flag' ([key, value]), 'make_rejected_inactive'
and 'record' (attach the shared CandidateRecorder as reject action).

Usage:
    config = load_config('pipeline.yaml')
    sim, recorder = build_module_list(config)
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from uhecr_mc.core import units
from uhecr_mc.errors import ConfigurationError
from uhecr_mc.physics.pair_production import ElectronPairProduction
from uhecr_mc.physics.photon_field import PHOTON_FIELDS
from uhecr_mc.physics.redshift import Redshift
from uhecr_mc.transport.break_condition import (
    BreakCondition,
    DetectionLength,
    MaximumTrajectoryLength,
    MinimumChargeNumber,
    MinimumEnergy,
    MinimumEnergyPerParticleId,
    MinimumRedshift,
    MinimumRigidity,
)
from uhecr_mc.transport.module import ModuleList
from uhecr_mc.transport.output import CandidateRecorder

DEFAULTS: Dict[str, Any] = {
    'max_step': 1.0,         # Mpc
    'photon_fields': ['CMB'],
    'verbose': False,
    'modules': [],
}

_CONDITION_KEYS = {'flag', 'make_rejected_inactive', 'record'}


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a pipeline configuration file and merge it with DEFAULTS.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If the document is not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, encoding='utf-8') as f:
        try:
            document = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")

    config = copy.deepcopy(DEFAULTS)
    config.update(document)
    return config


def _photon_fields(names):
    if isinstance(names, str):
        names = [names]
    fields = []
    for name in names:
        if name not in PHOTON_FIELDS:
            raise ConfigurationError(
                f"Unknown photon field '{name}'. Available: {sorted(PHOTON_FIELDS)}"
            )
        fields.append(PHOTON_FIELDS[name]())
    return fields


def _build_condition(kind: str, params: Dict[str, Any]) -> BreakCondition:
    if kind == 'MaximumTrajectoryLength':
        module = MaximumTrajectoryLength(params.pop('max_length') * units.Mpc)
        for observer in params.pop('observers', []):
            module.add_observer_position([x * units.Mpc for x in observer])
    elif kind == 'MinimumEnergy':
        module = MinimumEnergy(params.pop('min_energy') * units.EeV)
    elif kind == 'MinimumRigidity':
        module = MinimumRigidity(params.pop('min_rigidity') * units.EeV)
    elif kind == 'MinimumRedshift':
        module = MinimumRedshift(params.pop('z_min', 0.0))
    elif kind == 'MinimumChargeNumber':
        module = MinimumChargeNumber(int(params.pop('min_charge_number')))
    elif kind == 'MinimumEnergyPerParticleId':
        module = MinimumEnergyPerParticleId(params.pop('min_energy_others') * units.EeV)
        for pid, energy in params.pop('min_energies', {}).items():
            module.add(int(pid), energy * units.EeV)
    elif kind == 'DetectionLength':
        module = DetectionLength(params.pop('det_length') * units.Mpc)
    else:
        raise ConfigurationError(f"Unknown module type '{kind}'")
    return module


def build_module_list(config: Dict[str, Any],
                      recorder: Optional[CandidateRecorder] = None
                      ) -> Tuple[ModuleList, Optional[CandidateRecorder]]:
    """
    Build a ModuleList from a configuration mapping.

    Parameters:
        config: Configuration (see load_config)
        recorder: Recorder used for 'record: true' (created if needed)

    Returns:
        (module_list, recorder); recorder is None if nothing records

    Raises:
        ConfigurationError: For unknown module types, missing or unused parameters
    """
    try:
        max_step = float(config.get('max_step', DEFAULTS['max_step'])) * units.Mpc
        sim = ModuleList(max_step=max_step, verbose=bool(config.get('verbose', False)))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid max_step: {e}") from e

    for index, entry in enumerate(config.get('modules') or []):
        if not isinstance(entry, dict) or 'type' not in entry:
            raise ConfigurationError(f"modules[{index}]: entry needs a 'type'")
        params = dict(entry)
        kind = params.pop('type')

        try:
            if kind == 'Redshift':
                module = Redshift()
            elif kind == 'ElectronPairProduction':
                names = params.pop('photon_fields', config.get('photon_fields', ['CMB']))
                module = ElectronPairProduction(
                    _photon_fields(names),
                    max_loss_fraction=params.pop('max_loss_fraction', 0.1),
                )
            else:
                condition_params = {k: params.pop(k) for k in list(params)
                                    if k in _CONDITION_KEYS}
                module = _build_condition(kind, params)
                if 'flag' in condition_params:
                    key, value = condition_params['flag']
                    module.set_reject_flag(key, value)
                if 'make_rejected_inactive' in condition_params:
                    module.set_make_rejected_inactive(
                        bool(condition_params['make_rejected_inactive'])
                    )
                if condition_params.get('record', False):
                    if recorder is None:
                        recorder = CandidateRecorder()
                    module.on_reject(recorder)
        except KeyError as e:
            raise ConfigurationError(f"modules[{index}] ({kind}): missing parameter {e}") from e
        except (TypeError, ValueError) as e:
            if isinstance(e, ConfigurationError):
                raise
            raise ConfigurationError(f"modules[{index}] ({kind}): {e}") from e

        if params:
            raise ConfigurationError(
                f"modules[{index}] ({kind}): unknown parameters {sorted(params)}"
            )
        sim.add(module)

    return sim, recorder
