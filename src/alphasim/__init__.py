"""
alpha-sim: offline simulation engine for cross-sectional alpha signals.

Pluggable scripts fill one raw signal row per date; the engine selects the
liquid universe, smooths, neutralizes, caps and scales the signal into
positions, and scores daily return and turnover for every alpha.
"""

from .data_registry import DataRegistry
from .config import AlphaConfig, Neutralization, SimulationSettings, load_settings
from .grid import SignalGrid
from .universe import UniverseSelector
from .generator import CallableGenerator, ScriptGenerator
from .portfolio import PortfolioEngine
from .alpha import Alpha
from .simulation import Simulation
from .report import ReportWriter, compute_summary

__all__ = [
    'DataRegistry',
    'AlphaConfig',
    'Neutralization',
    'SimulationSettings',
    'load_settings',
    'SignalGrid',
    'UniverseSelector',
    'CallableGenerator',
    'ScriptGenerator',
    'PortfolioEngine',
    'Alpha',
    'Simulation',
    'ReportWriter',
    'compute_summary',
]

__version__ = '0.1.0'
