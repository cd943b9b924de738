import io
import pytest
import gmcns.progress
from gmcns import converge_ensemble, ProgressReporter
from gmcns.progress import (convergence_display, evidence_display,
                            info_display, lh_display, liwi_display,
                            ensemble_display, model_display,
                            model_obs_display, tuning_display)
from gmcns import Ensemble
from utils import make_ensemble, rejection_step
"""
Run a series of basic tests testing printing output
"""

printing = True

ALL_PANELS = [
    convergence_display, evidence_display, info_display, lh_display,
    liwi_display, ensemble_display, model_display, model_obs_display,
    tuning_display
]


@pytest.mark.parametrize('withtqdm', [False, True])
def test_printing(tmp_path, withtqdm, monkeypatch, capsys):
    if not withtqdm:
        monkeypatch.setattr(gmcns.progress, 'tqdm', None)
    e = make_ensemble(tmp_path)
    converge_ensemble(e,
                      rejection_step,
                      converge_factor=0.1,
                      print_progress=printing,
                      update_interval=-1)
    err = capsys.readouterr().err
    if withtqdm:
        assert err != ''
    else:
        assert 'iter: ' in err
        assert 'logz: ' in err
        assert 'conv: ' in err
        assert 'iter: {:d}'.format(e.iterate) in err


def test_no_printing(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(gmcns.progress, 'tqdm', None)
    e = make_ensemble(tmp_path)
    converge_ensemble(e,
                      rejection_step,
                      converge_factor=0.1,
                      print_progress=False)
    captured = capsys.readouterr()
    assert captured.err == ''
    assert captured.out == ''


def test_panels(tmp_path):
    e = make_ensemble(tmp_path)
    out = io.StringIO()
    reporter = ProgressReporter(e,
                                update_interval=-1,
                                start_it=e.iterate,
                                upper_displays=[ALL_PANELS[:5]],
                                lower_displays=[ALL_PANELS[5:]],
                                output=out)
    assert reporter.pbar is None
    converge_ensemble(e,
                      rejection_step,
                      converge_factor=0.1,
                      reporter=reporter)
    text = out.getvalue()
    assert 'Convergence Interval Recent History' in text
    assert 'Evidence History' in text
    assert 'Information History' in text
    assert 'Contour History' in text
    assert 'evidentiary weight' in text
    assert 'Ensemble: 50 models' in text
    assert 'Current MAP model' in text
    assert 'Tuner:' in text
    assert 'nreject' in text
    assert 'p1: ' in text
    assert reporter.tuner is not None
    assert reporter.counter == e.iterate
    for panel in ALL_PANELS:
        lines = panel(reporter)
        assert len(lines) > 0
        assert all(isinstance(_, str) for _ in lines)


def test_progargs(tmp_path):
    # panel options given directly to converge_ensemble
    e = make_ensemble(tmp_path)
    out = io.StringIO()
    converge_ensemble(e,
                      rejection_step,
                      converge_factor=0.1,
                      upper_displays=[[convergence_display],
                                      [evidence_display]],
                      lower_displays=[[ensemble_display]],
                      disp_rot_its=10,
                      update_interval=-1,
                      output=out)
    text = out.getvalue()
    # both upper groups were shown in turn
    assert 'Convergence Interval Recent History' in text
    assert 'Evidence History' in text
    assert 'Ensemble: 50 models' in text
    assert text.count('Ensemble: 50 models') == e.iterate - 1


def test_rotation(ensemble):
    e = ensemble
    upper = [[convergence_display], [evidence_display, info_display]]
    lower = [[ensemble_display]]
    reporter = ProgressReporter(e,
                                start_it=5,
                                upper_displays=upper,
                                lower_displays=lower,
                                disp_rot_its=10,
                                print_progress=False)
    assert reporter.active_panels() == [upper[0], lower[0]]
    reporter.counter = 14
    assert reporter.active_panels() == [upper[0], lower[0]]
    reporter.counter = 15
    assert reporter.active_panels() == [upper[1], lower[0]]
    reporter.counter = 25
    assert reporter.active_panels() == [upper[0], lower[0]]


def test_no_rotation(ensemble):
    e = ensemble
    upper = [[convergence_display], [evidence_display]]
    reporter = ProgressReporter(e,
                                upper_displays=upper,
                                print_progress=False)
    reporter.counter = 1000
    assert reporter.active_panels() == [upper[0], []]
    with pytest.raises(ValueError):
        ProgressReporter(e, disp_rot_its=-1, print_progress=False)


def test_history_memory(ensemble):
    e = ensemble
    reporter = ProgressReporter(e, print_progress=False)
    for i in range(gmcns.progress.CONVERGENCE_MEMORY + 10):
        reporter.update(float(i), 0.)
    assert len(reporter.convergence_history) == \
        gmcns.progress.CONVERGENCE_MEMORY
    assert reporter.convergence_history[-1] == \
        gmcns.progress.CONVERGENCE_MEMORY + 9
    assert reporter.counter == 1 + gmcns.progress.CONVERGENCE_MEMORY + 10


def test_tuning_display(ensemble):
    reporter = ProgressReporter(ensemble, print_progress=False)
    assert tuning_display(reporter) == ['Tuner: (none)']
    reporter.tuner = {'tau': 0.25, 'long': 'x' * 100}
    lines = tuning_display(reporter)
    assert lines[0] == 'Tuner:'
    assert lines[2] == '  tau: 0.25'
    assert lines[1].endswith('...')
    assert len(lines[1]) < 70


def test_model_obs_display(tmp_path):
    e = Ensemble(str(tmp_path), [[0., 1.], [2., 3.]], [-1., -2.])
    reporter = ProgressReporter(e, print_progress=False)
    lines = model_obs_display(reporter)
    assert lines[0].startswith('Current MAP model (logL -1')
    assert lines[1].startswith('  p0: 0 | ensemble 1 +/- 1')
    assert lines[2].startswith('  p1: 1 | ensemble 2 +/- 1')
    # parameters that are not numbers
    e = Ensemble(str(tmp_path / 'str'), ['a', 'b'], [-1., -2.])
    reporter = ProgressReporter(e, print_progress=False)
    assert model_obs_display(reporter) == [
        'Current MAP model (logL -1)', "  'a'"
    ]
