from roombot.bootstrap.chain import AcquiredInitializer, BootstrapChain, default_chain
from roombot.bootstrap.strategies import (
    BootstrapStrategy,
    HostSurfaceStrategy,
    NativeInitializerStrategy,
    OfflineSimulationStrategy,
    RemoteScriptStrategy,
)

__all__ = [
    "AcquiredInitializer",
    "BootstrapChain",
    "BootstrapStrategy",
    "HostSurfaceStrategy",
    "NativeInitializerStrategy",
    "OfflineSimulationStrategy",
    "RemoteScriptStrategy",
    "default_chain",
]
