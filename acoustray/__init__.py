"""acoustray – geometric acoustics ray tracer.

The package is organised around a few components:
- geometry kernel: Ray, HitRecord and analytic shapes (core.ray, core.shapes)
- SceneModel with the free-field reference model (core.scene)
- point source ray factory with offset strategies (sources)
- RayTracer and energy CollectionPolicy (core.tracer, core.collection)
- Simulator frequency sweep orchestrator (core.simulator)
- position trackers and results writers (core.trackers, core.exporter)
"""

from .core.constants import DEFAULT_CONSTANTS, SimulationConstants
from .core.ray import Ray, HitRecord
from .core.materials import Material
from .core.shapes import Sphere, Plane, Disc, EnergyCollector
from .core.scene import SceneModel
from .core.tracer import RayTracer, Escaped, Absorbed, Reflected
from .core.collection import CaptureAllPolicy, IncidenceWeightedPolicy
from .core.results import FrequencySweepResult
from .core.simulator import Simulator
from .core.trackers import PositionTracker, JsonPositionTracker, SampledPositionTracker
from .core.exporter import JsonResultsWriter, NpzResultsWriter, save_results_as_json, save_model_to_json
from .sources.offset import NoOffset, RandomOffset
from .sources.patterns import SphericalGridPattern
from .sources.speaker import PointSpeakerRayFactory

__version__ = "0.1.0"
