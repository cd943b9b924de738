#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Live progress reporting for ensemble convergence.

The reporter prints a one line status of the run (through tqdm if it is
installed) and, optionally, groups of text panels in an upper and a lower
half of the display. When several groups are given for a half, the group on
show rotates every `disp_rot_its` iterates.

A panel is any callable taking the reporter and returning a list of lines,
for example::

    reporter = ProgressReporter(ens,
                                upper_displays=[[convergence_display],
                                                [evidence_display]],
                                lower_displays=[[ensemble_display]],
                                disp_rot_its=1000)

"""

import sys
import shutil
import numpy as np
from .utils import DelayTimer

try:
    import tqdm
except ImportError:
    tqdm = None

__all__ = [
    "ProgressReporter", "convergence_display", "evidence_display",
    "info_display", "lh_display", "liwi_display", "ensemble_display",
    "model_display", "model_obs_display", "tuning_display"
]

# number of iterates of convergence history kept by the reporter
CONVERGENCE_MEMORY = 500

_SPARKS = u'▁▂▃▄▅▆▇█'


def _sparkline(values, width=60):
    vals = np.asarray(values, dtype=float)
    vals = vals[np.isfinite(vals)]
    if len(vals) == 0:
        return ''
    if len(vals) > width:
        vals = vals[np.linspace(0, len(vals) - 1, width).astype(int)]
    lo, hi = vals.min(), vals.max()
    if hi == lo:
        return _SPARKS[0] * len(vals)
    idx = ((vals - lo) / (hi - lo) * (len(_SPARKS) - 1)).round().astype(int)
    return ''.join(_SPARKS[i] for i in idx)


def _history_panel(title, values, first_it):
    vals = np.asarray(values, dtype=float)
    finite = vals[np.isfinite(vals)]
    if len(finite) == 0:
        return [title, '  (no finite values yet)']
    return [
        title,
        '  {} '.format(_sparkline(vals)),
        '  iterates {:d}-{:d} | min: {:.4g} | max: {:.4g} | last: {:.4g}'.
        format(first_it, first_it + len(vals) - 1, finite.min(), finite.max(),
               vals[-1])
    ]


def convergence_display(p):
    first = p.counter - (len(p.convergence_history) - 1)
    return _history_panel('Convergence Interval Recent History',
                          p.convergence_history, first)


def evidence_display(p):
    return _history_panel('Evidence History (logZ)', p.e.log_Zi[1:], 2)


def info_display(p):
    return _history_panel('Information History (H)', p.e.Hi[1:], 2)


def lh_display(p):
    return _history_panel('Contour History (logL)', p.e.log_Li[1:], 2)


def liwi_display(p):
    first = max(2, p.e.iterate - (CONVERGENCE_MEMORY - 1))
    return _history_panel('Recent iterate evidentiary weight (log Liwi)',
                          p.e.log_Liwi[first - 1:], first)


def ensemble_display(p):
    logls = p.e.live_logl()
    return [
        'Ensemble: {:d} models | iterate: {:d}'.format(
            p.e.nlive, p.e.iterate),
        '  live logL min: {:.4g} | median: {:.4g} | max: {:.4g}'.format(
            logls.min(), np.median(logls), logls.max()),
        '  contour: {:.4g} | logX: {:.4g} | logZ: {:.4g} | H: {:.4g}'.format(
            p.e.contour, p.e.log_Xi[-1], p.e.log_Zi[-1], p.e.Hi[-1])
    ]


def model_display(p):
    return ['Current MAP model:', '  ' + repr(p.top_m)]


def model_obs_display(p):
    """MAP model parameters next to the spread of the live parameters."""
    lines = ['Current MAP model (logL {:.4g})'.format(p.top_m.log_Li)]
    try:
        live = np.array([m.params for m in p.e.models], dtype=float)
        best = np.asarray(p.top_m.params, dtype=float)
    except (TypeError, ValueError):
        # parameters that are not numeric arrays
        return lines + ['  ' + repr(p.top_m.params)]
    if live.ndim == 1:
        live = live[:, None]
    mean, std = live.mean(axis=0), live.std(axis=0)
    for i, (b, m, s) in enumerate(zip(np.atleast_1d(best), mean, std)):
        lines.append('  p{:d}: {:.4g} | ensemble {:.4g} +/- {:.4g}'.format(
            i, b, m, s))
    return lines


def tuning_display(p):
    if p.tuner is None:
        return ['Tuner: (none)']
    lines = ['Tuner:']
    for k in sorted(p.tuner, key=str):
        val = repr(p.tuner[k])
        if len(val) > 60:
            val = val[:57] + '...'
        lines.append('  {}: {}'.format(k, val))
    return lines


class ProgressReporter:
    """
    Progress reporter for `converge_ensemble`.

    Parameters
    ----------
    ensemble : `~gmcns.Ensemble`
        The ensemble being converged.
    update_interval : float, optional
        Minimum number of seconds between redraws. Default is 0.1.
    start_it : int, optional
        Iterate the run starts (or resumes) from.
    upper_displays, lower_displays : list of list of callables, optional
        Panel groups shown in the upper and lower half of the display.
    disp_rot_its : int, optional
        Number of iterates between rotations of the panel groups. 0 (the
        default) always shows the first group.
    print_progress : bool, optional
        If False nothing is printed. Default is True.
    tuner : dict, optional
        The tuner of the run, shown by `tuning_display`. Set by
        `converge_ensemble`.
    output : file-like, optional
        Where to write. Defaults to `sys.stderr`; tqdm is used for the
        status line when it is available, no panels are configured and no
        output is given.

    """

    def __init__(self,
                 ensemble,
                 update_interval=0.1,
                 start_it=1,
                 upper_displays=None,
                 lower_displays=None,
                 disp_rot_its=0,
                 print_progress=True,
                 tuner=None,
                 output=None):
        self.e = ensemble
        self.tuner = tuner
        self.start_it = start_it
        self.counter = start_it
        self.convergence_history = []
        self.top_m = ensemble.map_model()
        self.upper_displays = list(upper_displays or [])
        self.lower_displays = list(lower_displays or [])
        if disp_rot_its < 0:
            raise ValueError('disp_rot_its must be non-negative')
        self.disp_rot_its = disp_rot_its
        self.print_progress = print_progress
        self.timer = DelayTimer(update_interval)
        self.pbar = None
        self._written = False
        if (print_progress and tqdm is not None and output is None
                and not self.upper_displays and not self.lower_displays):
            self.pbar = tqdm.tqdm(initial=start_it)
        self.output = output

    def _stream(self):
        # resolved lazily so that a redirected sys.stderr is honoured
        return self.output if self.output is not None else sys.stderr

    def update(self, value, threshold):
        """Record the convergence value of the latest iterate and redraw
        if enough time has passed."""
        self.counter += 1
        self.convergence_history.append(value)
        if len(self.convergence_history) > CONVERGENCE_MEMORY:
            del self.convergence_history[0]
        self.top_m = self.e.map_model()
        if self.print_progress and self.timer.is_time():
            self.display(value, threshold)

    def status(self, value, threshold):
        """Status line fields, longest first."""
        long_str = [
            "iter: {:d}".format(self.counter),
            "logz: {:6.3f}".format(self.e.log_Zi[-1]),
            "H: {:6.3f}".format(self.e.Hi[-1]),
            "contour: {:6.3f}".format(self.e.contour),
            "conv: {:6.3f} > {:6.3f}".format(value, threshold)
        ]
        short_str = [long_str[0], long_str[1], long_str[-1]]
        return long_str, short_str

    def active_panels(self):
        """The panel groups currently on show in the upper and lower
        halves."""
        panels = []
        for groups in (self.upper_displays, self.lower_displays):
            if len(groups) == 0:
                panels.append([])
                continue
            if self.disp_rot_its > 0:
                i = ((self.counter - self.start_it) // self.disp_rot_its) % len(
                    groups)
            else:
                i = 0
            panels.append(list(groups[i]))
        return panels

    def display(self, value, threshold):
        long_str, short_str = self.status(value, threshold)
        if self.pbar is not None:
            self.pbar.set_postfix_str(" | ".join(long_str[1:]), refresh=False)
            self.pbar.update(self.counter - self.pbar.n)
            return

        out = self._stream()
        upper, lower = self.active_panels()
        if upper or lower:
            lines = [' | '.join(long_str)]
            for panel in upper:
                lines.extend(panel(self))
            if upper and lower:
                lines.append('-' * 40)
            for panel in lower:
                lines.extend(panel(self))
            out.write('\n'.join(lines) + '\n')
        else:
            long_str = ' | '.join(long_str)
            short_str = '|'.join(short_str)
            if out.isatty() and hasattr(shutil, 'get_terminal_size'):
                columns = shutil.get_terminal_size(fallback=(80, 25))[0]
            else:
                columns = 200
            if columns > len(long_str):
                out.write("\r" + long_str + ' ' *
                          (columns - len(long_str) - 2))
            else:
                out.write("\r" + short_str + ' ' *
                          max(columns - len(short_str) - 2, 0))
        out.flush()
        self._written = True

    def close(self):
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None
        elif self._written:
            self._stream().write('\n')
            self._written = False
