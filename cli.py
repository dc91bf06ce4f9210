#!/usr/bin/env python3
"""
odf-signals - Command Line Interface

Main entry point for computing onset detection functions of audio tracks.
Uses odf_signals.detector for all DSP operations.
"""

import argparse
import sys
import traceback
from pathlib import Path
from typing import Dict, Optional, Tuple

import numpy as np

import config
from odf_signals import audio_io, export
from odf_signals.detector import OnsetDetectionFunction
from odf_signals.kernel_params import (
    FrameParams,
    KernelConfig,
    OdfParams,
    OnsetMetric,
    WindowType,
    validate_config,
)
from odf_signals.synthetic import generate_click_track, generate_tone_bursts
from odf_signals.timebase import compute_odf_time_axis


def build_kernel_config(params: Dict) -> KernelConfig:
    """
    Build and validate a KernelConfig from a CLI parameters dict.

    Raises:
        ValueError: If the parameters are inconsistent
    """
    kernel_config = KernelConfig(
        frame=FrameParams(
            frame_size=params['frame_size'],
            hop_size=params['hop_size'],
            sample_rate=params['target_sr'],
        ),
        odf=OdfParams(
            metric=params['metric'],
            window=params['window'],
            phase_magnitude_threshold=config.PHASE_MAGNITUDE_THRESHOLD,
            tukey_alpha=config.TUKEY_ALPHA,
        ),
    )
    validate_config(kernel_config)
    return kernel_config


def analyze_audio(
    audio: np.ndarray,
    sr: int,
    kernel_config: KernelConfig
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Run the detection function over a preprocessed signal.

    Parameters:
        audio: Mono audio array
        sr: Sample rate (Hz)
        kernel_config: Framing and detection function parameters

    Returns:
        Tuple of (odf_values, frame_times)
    """
    frame = kernel_config.frame
    odf = OnsetDetectionFunction.from_params(frame.hop_size, frame.frame_size, kernel_config.odf)
    try:
        values = odf.process(audio)
    finally:
        odf.close()

    times = compute_odf_time_axis(
        len(values), frame.hop_size, sr, frame.frame_size, duration_sec=len(audio) / sr
    )
    return values, times


def process_audio_array(
    audio_data: Dict,
    track_name: str,
    output_dir: Path,
    params: Dict,
    verbose: bool = False
) -> bool:
    """
    Analyze an already loaded signal and write its outputs.

    Parameters:
        audio_data: Dict with 'audio', 'sample_rate', 'duration', 'preprocessing'
        track_name: Base name for output files
        output_dir: Output directory for results
        params: Parameters dict
        verbose: Print verbose progress messages

    Returns:
        True if successful, False otherwise
    """
    try:
        audio = audio_data['audio']
        sr = audio_data['sample_rate']
        kernel_config = build_kernel_config({**params, 'target_sr': sr})

        if verbose:
            print("2. Computing onset detection function...")

        values, times = analyze_audio(audio, sr, kernel_config)

        if verbose:
            print(f"   Computed {len(values)} frames")
            print("3. Exporting results...")

        odf_json = export.create_odf_json(audio_data, kernel_config.to_dict(), values, times)
        created_files = export.export_all_outputs(
            odf_json,
            output_dir,
            track_name,
            audio=audio,
            generate_plots=params.get('generate_plots', True)
        )

        if verbose:
            print(f"   Created {len(created_files)} output files")

        export.print_odf_summary(odf_json, track_name)
        return True

    except Exception as e:
        print(f"ERROR processing {track_name}: {e}", file=sys.stderr)
        if verbose:
            traceback.print_exc()
        return False


def process_single_track(
    file_path: Path,
    output_dir: Path,
    params: Dict,
    verbose: bool = False
) -> bool:
    """
    Process a single audio file through the full pipeline.

    Parameters:
        file_path: Path to audio file
        output_dir: Output directory for results
        params: Parameters dict (from config or overrides)
        verbose: Print verbose progress messages

    Returns:
        True if successful, False otherwise
    """
    if verbose:
        print(f"\nProcessing: {file_path.name}")
        print("-" * 60)
        print("1. Loading and preprocessing audio...")

    try:
        audio_data = audio_io.preprocess_audio(
            str(file_path),
            target_sr=params.get('target_sr'),
            normalize_method=params.get('normalize_method', config.NORMALIZATION_METHOD),
            max_duration=config.MAX_TRACK_DURATION_SEC
        )
    except Exception as e:
        print(f"ERROR loading {file_path.name}: {e}", file=sys.stderr)
        if verbose:
            traceback.print_exc()
        return False

    if verbose:
        print(f"   Duration: {audio_data['duration']:.2f}s, "
              f"Sample rate: {audio_data['sample_rate']} Hz")

    return process_audio_array(audio_data, file_path.stem, output_dir, params, verbose)


def process_directory(
    input_dir: Path,
    output_dir: Path,
    params: Dict,
    verbose: bool = False
) -> Dict:
    """
    Process all audio files in a directory.

    Parameters:
        input_dir: Input directory containing audio files
        output_dir: Output directory for results
        params: Parameters dict
        verbose: Print verbose messages

    Returns:
        Dict with success/failure counts
    """
    audio_files = sorted(
        p for p in input_dir.iterdir()
        if p.is_file() and p.suffix.lower() in config.AUDIO_EXTENSIONS
    )

    if not audio_files:
        print(f"No audio files found in {input_dir}")
        return {'success': 0, 'failed': 0}

    print(f"Found {len(audio_files)} audio files")

    success_count = 0
    failed_count = 0

    for audio_file in audio_files:
        # Create per-track output directory
        track_output_dir = output_dir / audio_file.stem

        if process_single_track(audio_file, track_output_dir, params, verbose):
            success_count += 1
        else:
            failed_count += 1

    print(f"\nProcessing complete: {success_count} successful, {failed_count} failed")

    return {'success': success_count, 'failed': failed_count}


def run_demo_mode(output_dir: Path, params: Dict, verbose: bool = False) -> bool:
    """
    Run demo mode using synthetic test tracks.

    Parameters:
        output_dir: Output directory for demo results
        params: Parameters dict
        verbose: Print verbose messages

    Returns:
        True if every track succeeded
    """
    print("Running demo mode with synthetic audio...")

    sr = params.get('target_sr', config.TARGET_SAMPLE_RATE)

    test_tracks = [
        {
            'name': 'demo_click_track',
            'audio': generate_click_track(duration=4.0, sr=sr)[0],
            'description': '120 BPM click track'
        },
        {
            'name': 'demo_tone_bursts',
            'audio': generate_tone_bursts(duration=4.0, sr=sr)[0],
            'description': 'Alternating tone bursts'
        },
    ]

    print(f"Generated {len(test_tracks)} synthetic test tracks")

    all_ok = True
    for track_info in test_tracks:
        print(f"\nProcessing: {track_info['name']} ({track_info['description']})")
        print("-" * 60)

        audio_data = {
            'audio': track_info['audio'],
            'sample_rate': sr,
            'duration': len(track_info['audio']) / sr,
            'preprocessing': {
                'normalization_method': 'none',
                'normalization_factor': 1.0,
                'target_sr': sr,
            }
        }
        ok = process_audio_array(
            audio_data, track_info['name'], output_dir / track_info['name'], params, verbose
        )
        all_ok = all_ok and ok

    print(f"\nDemo complete! Results saved to {output_dir}")
    return all_ok


def main(argv: Optional[list] = None):
    """Main CLI entry point."""
    metric_names = [m.name.lower() for m in OnsetMetric]
    window_names = [w.name.lower() for w in WindowType]

    parser = argparse.ArgumentParser(
        description='odf-signals - Onset detection function analysis',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze single file
  %(prog)s track.wav --output results/

  # Analyze directory with a specific detection function
  %(prog)s tracks/ --output results/ --metric spectral_difference_hwr

  # Run demo mode
  %(prog)s --demo --output demo_results/

  # Verbose output
  %(prog)s track.wav --output results/ --verbose
        """
    )

    parser.add_argument(
        'input',
        nargs='?',
        type=str,
        help='Input audio file or directory (not needed for --demo)'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        required=True,
        help='Output directory for results'
    )

    parser.add_argument(
        '--demo',
        action='store_true',
        help='Run demo mode with synthetic test tracks (no input file needed)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Print verbose progress messages'
    )

    parser.add_argument(
        '--no-plots',
        action='store_true',
        help='Skip plot generation'
    )

    # Parameter overrides
    parser.add_argument(
        '--metric',
        choices=metric_names,
        default=config.ODF_METRIC,
        help=f'Detection function (default: {config.ODF_METRIC})'
    )

    parser.add_argument(
        '--window',
        choices=window_names,
        default=config.ODF_WINDOW,
        help=f'Analysis window (default: {config.ODF_WINDOW})'
    )

    parser.add_argument(
        '--frame-size',
        type=int,
        help=f'Frame size in samples (default: {config.FRAME_SIZE})'
    )

    parser.add_argument(
        '--hop-size',
        type=int,
        help=f'Hop size in samples (default: {config.HOP_SIZE})'
    )

    parser.add_argument(
        '--target-sr',
        type=int,
        help=f'Target sample rate (default: {config.TARGET_SAMPLE_RATE})'
    )

    args = parser.parse_args(argv)

    # Validate arguments
    if not args.demo and not args.input:
        parser.error("Either provide an input file/directory or use --demo")

    # Explicit zeros must reach validation rather than fall back to defaults
    params = {
        'target_sr': args.target_sr if args.target_sr is not None else config.TARGET_SAMPLE_RATE,
        'frame_size': args.frame_size if args.frame_size is not None else config.FRAME_SIZE,
        'hop_size': args.hop_size if args.hop_size is not None else config.HOP_SIZE,
        'metric': args.metric,
        'window': args.window,
        'normalize_method': config.NORMALIZATION_METHOD,
        'generate_plots': not args.no_plots
    }

    try:
        build_kernel_config(params)
    except ValueError as e:
        parser.error(str(e))

    output_dir = Path(args.output)

    # Run appropriate mode
    if args.demo:
        success = run_demo_mode(output_dir, params, args.verbose)
        sys.exit(0 if success else 1)

    input_path = Path(args.input)

    if not input_path.exists():
        print(f"ERROR: Input path does not exist: {input_path}", file=sys.stderr)
        sys.exit(1)

    if input_path.is_file():
        success = process_single_track(input_path, output_dir, params, args.verbose)
        sys.exit(0 if success else 1)

    elif input_path.is_dir():
        results = process_directory(input_path, output_dir, params, args.verbose)
        sys.exit(0 if results['failed'] == 0 else 1)

    else:
        print(f"ERROR: Invalid input path: {input_path}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
