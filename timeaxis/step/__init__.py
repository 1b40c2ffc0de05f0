# Re-export stepper components
from .labels import DEFAULT_FORMAT, MAJOR_LABELS, MINOR_LABELS, LabelFormat, render_label
from .scales import AUTOSCALE_TABLE, StepDescriptor, select_scale, snap
from .stepper import DEFAULT_OPTIONS, TimeStep, TimeStepOptions
from .ticks import Tick, generate_ticks, ticks_frame
