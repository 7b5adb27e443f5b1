from __future__ import annotations
import copy
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any

NUM_OSCILLATORS = 4
NUM_FILTERS = 2
NUM_LFOS = 2
NUM_STEPS = 16
NAME_LENGTH = 24

# Bit positions shared by eg_loop / eg_loop_seg / eg_restart
ENVELOPE_BITS = {"pitch": 2, "filter": 1, "amp": 0}


@dataclass
class Oscillator:
    on: bool = False
    waveform: int = 11
    pulse_width: int = 128
    saw_stack_detune: int = 0
    transpose: int = 128
    tune: int = 128
    level: int = 255
    level_l: int = 255
    level_r: int = 255
    velocity_sensitivity: int = 40
    key_breakpoint: int = 60
    key_l_depth: int = 0
    key_r_depth: int = 0
    key_l_curve: int = 0
    key_r_curve: int = 0
    pitch_mod_sensitivity: int = 255
    amp_mod_sensitivity: int = 255
    drift: int = 255


@dataclass
class Filter:
    cutoff1: int = 36
    cutoff2: int = 0
    resonance1: int = 0
    resonance2: int = 0
    kbd_track: int = 75
    eg_depth: int = 150
    eg_velocity: int = 220
    velocity_reso: int = 128
    kbd_track_reso: int = 128
    drive: int = 0


@dataclass
class Lfo:
    wave: int = 0
    range: int = 1
    speed: int = 128
    sync: int = 3
    fade: int = 255


@dataclass
class DirectModulation:
    """Performance controllers routed straight to a destination."""
    after: int = 128
    breath: int = 128
    foot: int = 128
    temp: int = 128
    vc0: int = 128
    vc1: int = 128
    rnd: int = 0


@dataclass
class LfoModulation:
    """Performance controllers scaling an LFO depth."""
    after: int = 0
    wheel: int = 0
    breath: int = 0
    foot: int = 0


@dataclass
class Envelope:
    """Seven-stage DAD1D2SR1R2 envelope (levels L0-L5, rates R0-R5)."""
    delay: int = 0
    start_level: int = 0
    attack_level: int = 0
    decay1_level: int = 0
    sustain_level: int = 0
    release1_level: int = 0
    release2_level: int = 0
    attack_time: int = 0
    decay1_time: int = 0
    decay2_time: int = 0
    release1_time: int = 0
    release2_time: int = 0
    rate_key: int = 0


@dataclass
class PitchEnvelope(Envelope):
    range: int = 0
    velo: int = 0


@dataclass
class Envelopes:
    pitch: PitchEnvelope = field(default_factory=PitchEnvelope)
    filter: Envelope = field(default_factory=Envelope)
    amp: Envelope = field(default_factory=Envelope)


@dataclass
class Arpeggiator:
    mode: int = 0
    tempo: int = 120
    mul: int = 1
    octaves: int = 2


@dataclass
class StepSequencer:
    on: bool = False
    velocity: int = 100
    steps: int = 16
    tempo: int = 120
    mul: int = 4
    transpose: int = 128
    step_values: list[int] = field(default_factory=lambda: [60] * NUM_STEPS)


@dataclass
class Bandwidth:
    value: int = 0


@dataclass
class Distortion:
    on: bool = False
    type: int = 0
    gain_pre: int = 50
    gain_post: int = 50
    filter_post: int = 4


@dataclass
class Bitcrusher:
    depth: int = 0


@dataclass
class Decimator:
    depth: int = 0


@dataclass
class PostFilter:
    lo: int = 255
    hi: int = 0


@dataclass
class Chorus:
    dry: int = 255
    wet: int = 180
    mode: int = 0
    speed: int = 30
    depth: int = 150
    feedback: int = 100
    lr_phase: int = 128


@dataclass
class Phaser:
    dry: int = 255
    wet: int = 0
    mode: int = 0
    speed: int = 100
    depth: int = 30
    offset: int = 100
    stages: int = 4
    feedback: int = 100
    lr_phase: int = 128


@dataclass
class AmpMod:
    depth: int = 0
    speed: int = 150
    range: int = 0
    lr_phase: int = 128


@dataclass
class Delay:
    dry: int = 255
    wet: int = 100
    mode: int = 0
    time: int = 100
    feedback: int = 30
    lo: int = 255
    hi: int = 0
    tempo: int = 120
    mul: int = 1
    div: int = 1
    mod_speed: int = 100
    mod_depth: int = 5
    smear: int = 0
    doubling_on: bool = False


@dataclass
class EarlyReflections:
    dry: int = 255
    wet: int = 0
    room: int = 0
    taps: int = 0
    feedback: int = 0


@dataclass
class Reverb:
    dry: int = 255
    wet: int = 0
    mode: int = 0
    decay: int = 200
    damp: int = 200
    hpf: int = 0
    mod_speed: int = 100
    mod_depth: int = 10


@dataclass
class Gate:
    on: bool = False
    curve: int = 0
    attack: int = 0
    release: int = 0


@dataclass
class Effects:
    bandwidth: Bandwidth = field(default_factory=Bandwidth)
    distortion: Distortion = field(default_factory=Distortion)
    bitcrusher: Bitcrusher = field(default_factory=Bitcrusher)
    decimator: Decimator = field(default_factory=Decimator)
    filter: PostFilter = field(default_factory=PostFilter)
    chorus: Chorus = field(default_factory=Chorus)
    phaser: Phaser = field(default_factory=Phaser)
    amp_mod: AmpMod = field(default_factory=AmpMod)
    delay: Delay = field(default_factory=Delay)
    early_reflections: EarlyReflections = field(default_factory=EarlyReflections)
    reverb: Reverb = field(default_factory=Reverb)
    gate: Gate = field(default_factory=Gate)


def _default_envelopes() -> Envelopes:
    # The factory program stores each stage's own parameter number as its value
    return Envelopes(
        pitch=PitchEnvelope(
            delay=110, start_level=80, attack_level=85, decay1_level=90,
            sustain_level=95, release1_level=100, release2_level=105,
            attack_time=115, decay1_time=120, decay2_time=125,
            release1_time=130, release2_time=135,
        ),
        filter=Envelope(
            delay=111, start_level=81, attack_level=86, decay1_level=91,
            sustain_level=96, release1_level=101, release2_level=106,
            attack_time=116, decay1_time=121, decay2_time=126,
            release1_time=131, release2_time=136,
        ),
        amp=Envelope(
            delay=112, start_level=82, attack_level=87, decay1_level=92,
            sustain_level=97, release1_level=102, release2_level=107,
            attack_time=117, decay1_time=122, decay2_time=127,
            release1_time=132, release2_time=137,
        ),
    )


@dataclass
class Patch:
    name: str = "Default Patch"

    # Global
    transpose: int = 128
    bend_up: int = 2
    bend_down: int = 2
    legato_mode: int = 0
    porta_mode: int = 0
    porta_time: int = 0
    volume: int = 128
    pan: int = 128
    velocity_offset: int = 0
    tuning: int = 0
    temp_offset: int = 0

    arpeggiator: Arpeggiator = field(default_factory=Arpeggiator)
    step_sequencer: StepSequencer = field(default_factory=StepSequencer)

    # Oscillators
    oscillators: list[Oscillator] = field(
        default_factory=lambda: [Oscillator(on=i == 0) for i in range(NUM_OSCILLATORS)]
    )
    osc_sync: int = 15   # bitmask
    osc_mode: int = 0    # bitmask
    osc_phase: int = 0
    ring_mod_34: bool = False

    # Filters
    filters: list[Filter] = field(default_factory=lambda: [Filter() for _ in range(NUM_FILTERS)])
    filter_type: int = 1
    filter_velocity: int = 0
    filter_routing: int = 0

    # LFOs
    lfos: list[Lfo] = field(default_factory=lambda: [Lfo() for _ in range(NUM_LFOS)])
    lfo1_depth_pitch: int = 5
    lfo1_depth_amp: int = 0
    lfo2_depth_pw: int = 0
    lfo2_depth_cutoff: int = 0

    # Performance modulation
    pitch_mod: DirectModulation = field(default_factory=DirectModulation)
    pw_mod: DirectModulation = field(default_factory=DirectModulation)
    cutoff_mod: DirectModulation = field(default_factory=DirectModulation)
    volume_mod: DirectModulation = field(default_factory=DirectModulation)
    pitch_lfo_mod: LfoModulation = field(default_factory=lambda: LfoModulation(wheel=72))
    amp_lfo_mod: LfoModulation = field(default_factory=LfoModulation)
    cutoff_lfo_mod: LfoModulation = field(default_factory=lambda: LfoModulation(wheel=77))
    pw_lfo_mod: LfoModulation = field(default_factory=LfoModulation)

    # Envelopes
    envelopes: Envelopes = field(default_factory=_default_envelopes)
    eg_loop: int = 0      # bitmask, see ENVELOPE_BITS
    eg_loop_seg: int = 0
    eg_restart: int = 0

    # Effects
    effects: Effects = field(default_factory=Effects)
    fx_routing: int = 0
    output_level: int = 160
    gain_pre: int = 2
    gain_post: int = 2

    def copy(self) -> Patch:
        return copy.deepcopy(self)


def default_patch() -> Patch:
    """Return a fresh copy of the compiled-in default program."""
    return Patch()


def mask_bit(mask: int, bit: int) -> bool:
    return bool(mask & (1 << bit))


def set_mask_bit(mask: int, bit: int, on: bool) -> int:
    if on:
        return mask | (1 << bit)
    return mask & ~(1 << bit)


def envelope_bit(target: str) -> int:
    if target not in ENVELOPE_BITS:
        raise ValueError(f"Unknown envelope target '{target}'")
    return ENVELOPE_BITS[target]


# -- dotted field paths --

def _step(node: Any, key: str, path: str) -> Any:
    if isinstance(node, list):
        try:
            return node[int(key)]
        except (ValueError, IndexError) as exc:
            raise KeyError(path) from exc
    if is_dataclass(node) and key in {f.name for f in fields(node)}:
        return getattr(node, key)
    raise KeyError(path)


def get_field(patch: Patch, path: str) -> Any:
    """Read a value by dotted path, e.g. ``"oscillators.0.level_l"``."""
    node: Any = patch
    for key in path.split("."):
        node = _step(node, key, path)
    return node


def set_field(patch: Patch, path: str, value: Any) -> None:
    """Write a value by dotted path.  Raises KeyError for unknown paths."""
    *parents, leaf = path.split(".")
    node: Any = patch
    for key in parents:
        node = _step(node, key, path)
    _step(node, leaf, path)  # validates the leaf exists
    if isinstance(node, list):
        node[int(leaf)] = value
    else:
        setattr(node, leaf, value)


def leaf_paths(node: Any, prefix: str = "") -> list[str]:
    """All scalar field paths below ``node`` in declaration order."""
    paths: list[str] = []
    if isinstance(node, list):
        items = [(str(i), v) for i, v in enumerate(node)]
    else:
        items = [(f.name, getattr(node, f.name)) for f in fields(node)]
    for key, value in items:
        path = f"{prefix}{key}"
        if is_dataclass(value) or isinstance(value, list):
            paths.extend(leaf_paths(value, path + "."))
        else:
            paths.append(path)
    return paths
