from __future__ import annotations
import math
from dataclasses import dataclass

IMAGE_SIZE = 512
NAME_ADDRESS = 480
NAME_LENGTH = 24


@dataclass(frozen=True)
class ParamDef:
    path: str
    address: int
    kind: str = "int"   # "int", "bool" or "text"
    section: str = ""
    display_name: str = ""
    length: int = 1     # bytes occupied; only text spans more than one
    options: tuple[str, ...] | None = None

    @property
    def addresses(self) -> range:
        return range(self.address, self.address + self.length)


def to_byte(value) -> int:
    """Serial value of a field: bools as 0/1, numbers rounded half-up and clamped to a byte."""
    if isinstance(value, bool):
        return 1 if value else 0
    return max(0, min(255, math.floor(value + 0.5)))


# ---------------------------------------------------------------------------
# Enumeration labels (XVA1 user manual)
# ---------------------------------------------------------------------------

WAVEFORM_OPTIONS = (
    "Saw Up", "Saw Down", "Square/Pulse", "Triangle", "Sine", "Noise",
    "SawStack 3 Stereo", "SawStack 7 Mono", "SawStack 7 Stereo",
)
FILTER_TYPE_OPTIONS = (
    "Bypass", "1-pole LP", "2-pole LP", "3-pole LP", "4-pole LP",
    "1-pole HP", "2-pole HP", "3-pole HP", "4-pole HP",
    "2-pole BP", "4-pole BP", "2-pole BR", "4-pole BR",
    "Serial: 2LP -> 2LP", "Serial: 2LP -> 2BP", "Serial: 2LP -> 2HP",
    "Parallel: 2x LP", "Parallel: LP & BP", "Parallel: LP & HP",
    "Parallel: BP & BP", "Parallel: BP & HP", "Parallel: HP & HP",
)
FILTER_ROUTING_OPTIONS = ("Two parallel stereo", "Independent L/R")
CURVE_OPTIONS = ("Decreases", "Increases")
LFO_WAVE_OPTIONS = (
    "Triangle", "Square", "Saw Up", "Saw Down", "Sine",
    "Sine(x)+Sine(2x)", "Sine(x)+Sine(3x)", "Sine(x)^3", "Guitar", "Random",
)
LFO_SYNC_OPTIONS = ("Single, Free", "Single, Key", "Multi, Free", "Multi, Key")
ARP_MODE_OPTIONS = ("Off", "Up", "Down", "Up/Down", "As Played", "Random")
DISTORTION_TYPE_OPTIONS = ("Hard Clip", "Soft Clip", "Tube 12AX", "Tube DSL")
BANDWIDTH_OPTIONS = ("48kHz", "20kHz", "18kHz", "16kHz", "14kHz", "12kHz", "10kHz", "8kHz")
CHORUS_MODE_OPTIONS = ("Chorus Long", "Chorus Short", "Flanger Long", "Flanger Short")
PHASER_MODE_OPTIONS = ("Mono", "Stereo", "Cross")
DELAY_MODE_OPTIONS = ("Stereo", "Cross", "Bounce")
REVERB_MODE_OPTIONS = ("Plate", "Hall")
GATE_CURVE_OPTIONS = ("S-Shape 1", "S-Shape 2")
FX_ROUTING_OPTIONS = ("Routing 1 (Pre-Delay)", "Routing 2 (Post-Delay)", "Bypass")
GAIN_OPTIONS = ("0dB", "6dB", "12dB", "18dB")


def _p(path, address, section, display_name="", kind="int", options=None) -> ParamDef:
    return ParamDef(path, address, kind=kind, section=section,
                    display_name=display_name or path.rsplit(".", 1)[-1].replace("_", " ").title(),
                    options=options)


def _oscillator(i: int) -> list[ParamDef]:
    o = f"oscillators.{i}"
    s = "oscillators"
    return [
        _p(f"{o}.on", 1 + i, s, "On", kind="bool"),
        _p(f"{o}.waveform", 11 + i, s, "Waveform", options=WAVEFORM_OPTIONS),
        _p(f"{o}.pulse_width", 15 + i, s, "Pulse Width"),
        _p(f"{o}.saw_stack_detune", 19 + i, s, "SawStack Detune"),
        _p(f"{o}.transpose", 23 + i, s),
        _p(f"{o}.tune", 27 + i, s),
        _p(f"{o}.level", 31 + i * 2, s),
        _p(f"{o}.level_l", 32 + i * 2, s, "Level L"),
        _p(f"{o}.level_r", 32 + i * 2, s, "Level R"),  # shares the L address on the hardware
        _p(f"{o}.velocity_sensitivity", 39 + i, s, "Velocity Sens"),
        _p(f"{o}.key_breakpoint", 43 + i, s, "Key Breakpoint"),
        _p(f"{o}.key_l_depth", 47 + i, s, "Key L Depth"),
        _p(f"{o}.key_r_depth", 51 + i, s, "Key R Depth"),
        _p(f"{o}.key_l_curve", 55 + i, s, "Key L Curve", options=CURVE_OPTIONS),
        _p(f"{o}.key_r_curve", 59 + i, s, "Key R Curve", options=CURVE_OPTIONS),
        _p(f"{o}.pitch_mod_sensitivity", 63 + i, s, "PMS"),
        _p(f"{o}.amp_mod_sensitivity", 67 + i, s, "AMS"),
        _p(f"{o}.drift", 260 + i, s),
    ]


def _filter(i: int) -> list[ParamDef]:
    # Both filters address the same hardware parameters
    f = f"filters.{i}"
    s = "filters"
    return [
        _p(f"{f}.cutoff1", 77, s, "Cutoff 1"),
        _p(f"{f}.cutoff2", 78, s, "Cutoff 2"),
        _p(f"{f}.resonance1", 79, s, "Resonance 1"),
        _p(f"{f}.resonance2", 79, s, "Resonance 2"),
        _p(f"{f}.kbd_track", 74, s, "KBD Track"),
        _p(f"{f}.eg_depth", 75, s, "EG Depth"),
        _p(f"{f}.eg_velocity", 220, s, "EG Velocity"),
        _p(f"{f}.velocity_reso", 76, s, "Velocity Reso"),
        _p(f"{f}.kbd_track_reso", 277, s, "KBD Track Reso"),
        _p(f"{f}.drive", 275, s),
    ]


def _lfo(i: int, base: int) -> list[ParamDef]:
    lfo = f"lfos.{i}"
    return [
        _p(f"{lfo}.wave", base, "lfos", options=LFO_WAVE_OPTIONS),
        _p(f"{lfo}.range", base + 1, "lfos"),
        _p(f"{lfo}.speed", base + 2, "lfos"),
        _p(f"{lfo}.sync", base + 3, "lfos", options=LFO_SYNC_OPTIONS),
        _p(f"{lfo}.fade", base + 4, "lfos"),
    ]


def _modulation(source: str, addresses: dict[str, int]) -> list[ParamDef]:
    return [_p(f"{source}.{key}", addr, "modulation") for key, addr in addresses.items()]


_ENVELOPE_STAGES = [
    # field, pitch-envelope address (filter = +1, amp = +2)
    ("start_level", 80), ("attack_level", 85), ("decay1_level", 90),
    ("sustain_level", 95), ("release1_level", 100), ("release2_level", 105),
    ("delay", 110), ("attack_time", 115), ("decay1_time", 120),
    ("decay2_time", 125), ("release1_time", 130), ("release2_time", 135),
]


def _envelope(target: str, offset: int) -> list[ParamDef]:
    e = f"envelopes.{target}"
    params = [_p(f"{e}.{key}", addr + offset, "envelopes") for key, addr in _ENVELOPE_STAGES]
    params.append(_p(f"{e}.rate_key", 0, "envelopes", "Rate Key"))
    return params


def _effect(effect: str, addresses: dict[str, int], options: dict[str, tuple[str, ...]] | None = None,
            bools: tuple[str, ...] = ()) -> list[ParamDef]:
    options = options or {}
    return [
        _p(f"effects.{effect}.{key}", addr, "effects",
           kind="bool" if key in bools else "int", options=options.get(key))
        for key, addr in addresses.items()
    ]


# ---------------------------------------------------------------------------
# Parameter definitions.  List order is the canonical encode order: when
# several paths share an address, the last one listed is what gets stored.
# ---------------------------------------------------------------------------

_PARAMS: list[ParamDef] = [
    ParamDef("name", NAME_ADDRESS, kind="text", section="global",
             display_name="Patch Name", length=NAME_LENGTH),

    # Global
    _p("transpose", 241, "global"),
    _p("bend_up", 242, "global", "Bend Up"),
    _p("bend_down", 243, "global", "Bend Down"),
    _p("legato_mode", 244, "global", "Legato"),
    _p("porta_mode", 245, "global", "Portamento Mode"),
    _p("porta_time", 246, "global", "Portamento Time"),
    _p("volume", 248, "global"),
    _p("pan", 247, "global"),
    _p("velocity_offset", 249, "global", "Velocity Offset"),
    _p("tuning", 251, "global"),
    _p("temp_offset", 239, "global", "Temp Offset"),

    # Arpeggiator
    _p("arpeggiator.mode", 450, "arpeggiator", options=ARP_MODE_OPTIONS),
    _p("arpeggiator.tempo", 451, "arpeggiator"),
    _p("arpeggiator.mul", 453, "arpeggiator", "Multiplier"),
    _p("arpeggiator.octaves", 454, "arpeggiator"),

    # Step sequencer
    _p("step_sequencer.on", 428, "sequencer", "On", kind="bool"),
    _p("step_sequencer.velocity", 429, "sequencer"),
    _p("step_sequencer.steps", 430, "sequencer"),
    _p("step_sequencer.tempo", 431, "sequencer"),
    _p("step_sequencer.mul", 432, "sequencer", "Multiplier"),
    _p("step_sequencer.transpose", 433, "sequencer"),
    *[_p(f"step_sequencer.step_values.{i}", 434 + i, "sequencer", f"Step {i + 1}")
      for i in range(16)],

    # Oscillators
    _p("osc_sync", 5, "oscillators", "Sync Mask"),
    _p("osc_mode", 6, "oscillators", "Mode Mask"),
    _p("osc_phase", 7, "oscillators", "Phase"),
    _p("ring_mod_34", 271, "oscillators", "Ring Mod 3*4", kind="bool"),
    *[p for i in range(4) for p in _oscillator(i)],

    # Filters
    _p("filter_type", 71, "filters", "Filter Type", options=FILTER_TYPE_OPTIONS),
    _p("filter_velocity", 73, "filters", "Filter Velocity"),
    _p("filter_routing", 278, "filters", "Routing", options=FILTER_ROUTING_OPTIONS),
    *[p for i in range(2) for p in _filter(i)],

    # LFOs
    *_lfo(0, 160),
    *_lfo(1, 170),
    _p("lfo1_depth_pitch", 165, "lfos", "LFO1 > Pitch"),
    _p("lfo1_depth_amp", 166, "lfos", "LFO1 > Amp"),
    _p("lfo2_depth_pw", 175, "lfos", "LFO2 > PW"),
    _p("lfo2_depth_cutoff", 176, "lfos", "LFO2 > Cutoff"),

    # Direct modulation (rnd exists only for pitch)
    *_modulation("pitch_mod", {"after": 200, "breath": 201, "foot": 202, "rnd": 203,
                               "temp": 220, "vc0": 221, "vc1": 222}),
    *_modulation("pw_mod", {"after": 204, "breath": 205, "foot": 206, "temp": 207,
                            "vc0": 224, "vc1": 225}),
    *_modulation("cutoff_mod", {"after": 208, "breath": 209, "foot": 210, "temp": 211,
                                "vc0": 226, "vc1": 227}),
    *_modulation("volume_mod", {"after": 212, "breath": 213, "foot": 214, "temp": 215,
                                "vc0": 230, "vc1": 231}),

    # LFO modulation
    *_modulation("pitch_lfo_mod", {"after": 180, "wheel": 181, "breath": 182, "foot": 183}),
    *_modulation("pw_lfo_mod", {"after": 184, "wheel": 185, "breath": 186, "foot": 187}),
    *_modulation("cutoff_lfo_mod", {"after": 188, "wheel": 189, "breath": 190, "foot": 191}),
    *_modulation("amp_lfo_mod", {"after": 192, "wheel": 193, "breath": 194, "foot": 195}),

    # Envelopes
    _p("eg_loop", 145, "envelopes", "Loop"),
    _p("eg_loop_seg", 146, "envelopes", "Loop Segment"),
    _p("eg_restart", 147, "envelopes", "Restart"),
    *_envelope("pitch", 0),
    _p("envelopes.pitch.range", 148, "envelopes", "Pitch Range"),
    _p("envelopes.pitch.velo", 149, "envelopes", "Pitch Velocity"),
    *_envelope("filter", 1),
    *_envelope("amp", 2),

    # Effects
    *_effect("bandwidth", {"value": 340}, {"value": BANDWIDTH_OPTIONS}),
    *_effect("distortion", {"on": 350, "type": 354, "gain_pre": 351, "gain_post": 352,
                            "filter_post": 353},
             {"type": DISTORTION_TYPE_OPTIONS}, bools=("on",)),
    *_effect("bitcrusher", {"depth": 380}),
    *_effect("decimator", {"depth": 370}),
    *_effect("filter", {"lo": 320, "hi": 321}),
    *_effect("chorus", {"dry": 360, "wet": 361, "mode": 362, "speed": 363, "depth": 364,
                        "feedback": 365, "lr_phase": 366},
             {"mode": CHORUS_MODE_OPTIONS}),
    *_effect("phaser", {"dry": 310, "wet": 311, "mode": 312, "speed": 313, "depth": 314,
                        "feedback": 315, "offset": 316, "stages": 317, "lr_phase": 318},
             {"mode": PHASER_MODE_OPTIONS}),
    *_effect("amp_mod", {"depth": 330, "speed": 331, "range": 332, "lr_phase": 333}),
    *_effect("delay", {"dry": 300, "wet": 301, "mode": 302, "time": 303, "feedback": 304,
                       "lo": 305, "hi": 306, "tempo": 307, "mul": 308, "div": 309,
                       "mod_speed": 298, "mod_depth": 299, "smear": 291, "doubling_on": 292},
             {"mode": DELAY_MODE_OPTIONS}, bools=("doubling_on",)),
    *_effect("early_reflections", {"dry": 294, "wet": 295, "room": 296, "taps": 293,
                                   "feedback": 297}),
    *_effect("reverb", {"dry": 390, "wet": 391, "mode": 392, "decay": 393, "damp": 394,
                        "hpf": 397, "mod_speed": 395, "mod_depth": 396},
             {"mode": REVERB_MODE_OPTIONS}),
    *_effect("gate", {"on": 385, "curve": 386, "attack": 387, "release": 388},
             {"curve": GATE_CURVE_OPTIONS}, bools=("on",)),

    # Master
    _p("fx_routing", 508, "effects", "FX Routing", options=FX_ROUTING_OPTIONS),
    _p("output_level", 509, "effects", "Output Level"),
    _p("gain_pre", 510, "effects", "Gain Pre", options=GAIN_OPTIONS),
    _p("gain_post", 511, "effects", "Gain Post", options=GAIN_OPTIONS),
]

# Fields that exist in the patch but have no hardware address
UNMAPPED_PATHS = ("pw_mod.rnd", "cutoff_mod.rnd", "volume_mod.rnd")


class ParamMap:
    def __init__(self) -> None:
        self._params = {p.path: p for p in _PARAMS}
        self._by_address: dict[int, list[str]] = {}
        for p in _PARAMS:
            for addr in p.addresses:
                self._by_address.setdefault(addr, []).append(p.path)

    def get(self, path: str) -> ParamDef | None:
        return self._params.get(path)

    def address_of(self, path: str) -> int | None:
        p = self._params.get(path)
        return p.address if p is not None else None

    def list_all(self) -> list[ParamDef]:
        """All definitions in canonical encode order."""
        return list(self._params.values())

    def paths(self) -> list[str]:
        return list(self._params.keys())

    def by_section(self, section: str) -> list[ParamDef]:
        return [p for p in self._params.values() if p.section == section]

    def sections(self) -> list[str]:
        return list(dict.fromkeys(p.section for p in self._params.values()))

    def paths_at(self, address: int) -> list[str]:
        return list(self._by_address.get(address, []))

    def aliases(self) -> dict[int, list[str]]:
        """Addresses observed by more than one field path."""
        return {a: list(ps) for a, ps in self._by_address.items() if len(ps) > 1}

    def mapped_addresses(self) -> set[int]:
        return set(self._by_address)
