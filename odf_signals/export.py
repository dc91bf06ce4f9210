"""
Export Module

Generate JSON outputs and plots for detection function results.
All outputs follow a versioned schema.
"""

import numpy as np
import json
from pathlib import Path
from typing import Dict, Optional
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt

import config
from odf_signals import timebase


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, np.bool_):
            return bool(obj)
        return super().default(obj)


def create_odf_json(
    audio_metadata: Dict,
    params: Dict,
    odf_values: np.ndarray,
    frame_times: np.ndarray
) -> Dict:
    """
    Create the detection function JSON following schema.

    Parameters:
        audio_metadata: Dict with 'duration', 'sample_rate' and optionally
            'preprocessing' (as returned by audio_io.preprocess_audio)
        params: Dict of parameters used (KernelConfig.to_dict())
        odf_values: Detection function values
        frame_times: Frame centre times, same length as odf_values

    Returns:
        Metrics dict ready for JSON serialization

    Raises:
        ValueError: If odf_values and frame_times differ in length
    """
    if len(odf_values) != len(frame_times):
        raise ValueError(
            f"odf_values ({len(odf_values)}) and frame_times ({len(frame_times)}) "
            f"must have the same length"
        )

    duration_sec = audio_metadata['duration']
    max_frame_time = float(np.max(frame_times)) if len(frame_times) > 0 else 0.0
    time_axis_valid = max_frame_time <= duration_sec + timebase.EPSILON_SEC

    hop_sec = params['hop_size'] / float(params['sample_rate'])
    values = np.asarray(odf_values, dtype=np.float64)

    return {
        'schema_version': config.SCHEMA_VERSION,

        'track_metadata': {
            'duration': duration_sec,
            'sample_rate': audio_metadata['sample_rate'],
            'preprocessing': audio_metadata.get('preprocessing', {}),
            'time_axis_info': {
                'max_frame_time': max_frame_time,
                'duration_sec': duration_sec,
                'time_axis_valid': time_axis_valid,
                'n_frames': len(frame_times),
                'timebase_version': timebase.TIMEBASE_VERSION,
            }
        },

        'params': params,

        'odf': {
            'values': values,
            'times': np.asarray(frame_times, dtype=np.float64),
            'sampling_interval_sec': hop_sec,
            'length': len(values),
            'description': f"Onset detection function ({params['metric']})",
            'stats': {
                'max': float(values.max()) if len(values) > 0 else 0.0,
                'mean': float(values.mean()) if len(values) > 0 else 0.0,
            }
        }
    }


def save_json(data: Dict, output_path: Path) -> None:
    """
    Save data as JSON with pretty printing.

    Parameters:
        data: Dictionary to save
        output_path: Path to output file
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2, cls=NumpyEncoder)


def plot_odf(
    odf_values: np.ndarray,
    frame_times: np.ndarray,
    output_path: Path,
    audio: Optional[np.ndarray] = None,
    sample_rate: Optional[int] = None,
    title: str = "Onset Detection Function"
) -> None:
    """
    Plot the detection function, optionally above the waveform.

    Parameters:
        odf_values: Detection function values
        frame_times: Frame centre times in seconds
        output_path: Path to save plot
        audio: Optional waveform drawn in a second panel
        sample_rate: Waveform sample rate (required with audio)
        title: Plot title
    """
    show_waveform = audio is not None and sample_rate is not None
    n_rows = 2 if show_waveform else 1

    fig, axes = plt.subplots(n_rows, 1, figsize=config.PLOT_FIGSIZE, sharex=True, squeeze=False)

    ax1 = axes[0, 0]
    ax1.plot(frame_times, odf_values, label='ODF', color='red', linewidth=1.5)
    ax1.set_ylabel('Onset strength', fontsize=10)
    ax1.set_title(title, fontsize=12, fontweight='bold')
    ax1.legend(loc='upper right', fontsize=8)
    ax1.grid(True, alpha=0.3)

    if show_waveform:
        ax2 = axes[1, 0]
        t = np.arange(len(audio)) / float(sample_rate)
        ax2.plot(t, audio, color='gray', linewidth=0.5)
        ax2.set_ylabel('Amplitude', fontsize=10)
        ax2.grid(True, alpha=0.3)

    axes[-1, 0].set_xlabel('Time (seconds)', fontsize=10)

    plt.tight_layout()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close(fig)


def export_all_outputs(
    odf_json: Dict,
    output_dir: Path,
    track_name: str,
    audio: Optional[np.ndarray] = None,
    generate_plots: bool = True
) -> Dict[str, Path]:
    """
    Write the JSON (and optionally the plot) for one track.

    Parameters:
        odf_json: Dict from create_odf_json
        output_dir: Directory for this track's outputs
        track_name: Base name for output files
        audio: Optional waveform for the plot
        generate_plots: Whether to render the plot

    Returns:
        Dict mapping output kind to written path
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    written = {}

    json_path = output_dir / f"{track_name}_odf.json"
    save_json(odf_json, json_path)
    written['odf_json'] = json_path

    if generate_plots:
        plot_path = output_dir / f"{track_name}_odf.png"
        plot_odf(
            np.asarray(odf_json['odf']['values']),
            np.asarray(odf_json['odf']['times']),
            plot_path,
            audio=audio,
            sample_rate=odf_json['track_metadata']['sample_rate'],
            title=f"{track_name} - {odf_json['params']['metric']}"
        )
        written['plot'] = plot_path

    return written


def print_odf_summary(odf_json: Dict, track_name: str) -> None:
    """Print a short human-readable summary of one result."""
    odf = odf_json['odf']
    params = odf_json['params']
    print(f"\n{track_name}")
    print("-" * 60)
    print(f"  Metric:    {params['metric']}  (window: {params['window']})")
    print(f"  Frames:    {odf['length']}  (frame {params['frame_size']}, hop {params['hop_size']})")
    print(f"  Duration:  {odf_json['track_metadata']['duration']:.2f}s")
    print(f"  ODF max:   {odf['stats']['max']:.4f}")
    print(f"  ODF mean:  {odf['stats']['mean']:.4f}")
