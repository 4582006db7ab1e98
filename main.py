# main.py
import argparse
import logging
import sys
import time

import numpy as np
import soundfile as sf

from analysis.engine import FormantAnalysisEngine
from analysis.envelope import spectrum_curve
from analysis.model import HarmonicBoost, SynthesisParameters, VocalPhysics
from analysis.vowel_classifier import classify_vowel
from analysis.vowel_data import DEFAULT_VOWEL, VOICES, VOWELS, formants_for
from mic_analyzer import MicAccessError, MicAnalyzer
from synth.engine import SynthStartError, VoiceSynth
from utils.config import load_config
from utils.music_utils import freq_to_note_name

logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------
def _add_voice_args(p):
    p.add_argument("--pitch", type=float, default=120.0, help="F0 in Hz")
    p.add_argument("--vowel", default=DEFAULT_VOWEL, choices=sorted(VOWELS))
    p.add_argument("--voice", default="male", choices=VOICES)
    p.add_argument("--volume", type=float, default=0.5)
    p.add_argument("--tract", type=float, default=17.5, help="vocal-tract length (cm)")
    p.add_argument("--thickness", type=float, default=50.0, help="fold thickness 0-100")
    p.add_argument("--cq", type=float, default=0.5, help="closed quotient 0-1")
    p.add_argument("--singers-formant", action="store_true")
    p.add_argument("--boost", type=float, nargs=3, metavar=("FREQ", "GAIN", "Q"),
                   help="harmonic boost peak")


def build_parser():
    parser = argparse.ArgumentParser(prog="vocal-lab", description="Voice synthesis and formant analysis")
    parser.add_argument("--config", help="JSON audio config file")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("play", help="play a sustained vowel")
    _add_voice_args(p)
    p.add_argument("--seconds", type=float, default=3.0)

    p = sub.add_parser("listen", help="print live formants from the microphone")
    p.add_argument("--seconds", type=float, default=10.0)
    p.add_argument("--voice", default="male", choices=VOICES)

    p = sub.add_parser("render", help="render a vowel to a WAV file")
    _add_voice_args(p)
    p.add_argument("--seconds", type=float, default=2.0)
    p.add_argument("out")

    p = sub.add_parser("analyze", help="print formants for each frame of a WAV file")
    p.add_argument("path")
    p.add_argument("--voice", default="male", choices=VOICES)

    p = sub.add_parser("envelope", help="print or plot the predicted envelope")
    _add_voice_args(p)
    p.add_argument("--out", help="PNG path (omit to print a table)")
    p.add_argument("--step", type=float, default=100.0, help="table step in Hz")

    return parser


def params_from_args(args) -> SynthesisParameters:
    boost = HarmonicBoost()
    if args.boost:
        freq, gain, q = args.boost
        boost = HarmonicBoost(True, freq, gain, q)
    return SynthesisParameters(
        pitch=args.pitch,
        formants=formants_for(args.vowel, args.voice),
        volume=args.volume,
        singers_formant=args.singers_formant,
        harmonic_boost=boost,
        physics=VocalPhysics(args.tract, args.thickness, args.cq),
    )


# ---------------------------------------------------------
# Commands
# ---------------------------------------------------------
def cmd_play(args, config):
    synth = VoiceSynth(config)
    try:
        synth.start(params_from_args(args))
    except SynthStartError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    try:
        time.sleep(args.seconds)
    except KeyboardInterrupt:
        pass
    finally:
        synth.stop()
    return 0


def cmd_listen(args, config):
    analyzer = MicAnalyzer(config)

    def show(result):
        if not result.voiced:
            return
        vowel, _ = classify_vowel(result.f1, result.f2, voice=args.voice)
        print(f"F1={result.f1:6.0f}  F2={result.f2:6.0f}  rms={result.energy:.3f}  /{vowel}/")

    try:
        analyzer.start(show)
    except MicAccessError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    try:
        time.sleep(args.seconds)
    except KeyboardInterrupt:
        pass
    finally:
        analyzer.stop()
    return 0


def render_to_file(params, path, seconds, config, seed=None):
    """Render `seconds` of the voice offline and write it with soundfile."""
    synth = VoiceSynth(config, stream_factory=None, seed=seed)
    synth.start(params)
    try:
        audio = synth.render(int(seconds * config.sample_rate))
    finally:
        synth.stop()
    sf.write(path, audio.astype(np.float32), config.sample_rate)
    logger.info("Rendered %.2f s to %s", seconds, path)
    return audio


def cmd_render(args, config):
    render_to_file(params_from_args(args), args.out, args.seconds, config)
    return 0


def analyze_file(path, config):
    """Run the formant engine over consecutive fft_size frames of a file."""
    y, sr = sf.read(path, always_2d=True)
    y = y[:, 0].astype(float)
    engine = FormantAnalysisEngine(
        sample_rate=sr,
        analysis_rate=config.analysis_rate,
        order=config.lpc_order,
        noise_gate=config.noise_gate,
    )
    frame_len = config.fft_size
    results = []
    for start in range(0, max(0, len(y) - frame_len + 1), frame_len):
        results.append((start / sr, engine.process_frame(y[start:start + frame_len])))
    return results


def cmd_analyze(args, config):
    for t, result in analyze_file(args.path, config):
        if result.voiced:
            vowel, _ = classify_vowel(result.f1, result.f2, voice=args.voice)
            print(f"{t:7.3f}s  F1={result.f1:6.0f}  F2={result.f2:6.0f}  /{vowel}/")
        else:
            print(f"{t:7.3f}s  -")
    return 0


def cmd_envelope(args, config):
    params = params_from_args(args)
    points = spectrum_curve(params)
    if args.out:
        from utils.plotting import plot_spectrum_curve

        title = f"/{args.vowel}/ {args.voice}, F0 {args.pitch:.0f} Hz ({freq_to_note_name(args.pitch)})"
        plot_spectrum_curve(points, args.out, title=title, formants=params.scaled_formants())
        return 0

    stride = max(1, int(round(args.step / (points[1].freq - points[0].freq))))
    for p in points[::stride]:
        print(f"{p.freq:7.0f} Hz  {p.envelope:6.1f}")
    return 0


COMMANDS = {
    "play": cmd_play,
    "listen": cmd_listen,
    "render": cmd_render,
    "analyze": cmd_analyze,
    "envelope": cmd_envelope,
}


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
    )
    config = load_config(args.config)
    return COMMANDS[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())
