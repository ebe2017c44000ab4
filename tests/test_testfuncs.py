import math

import pytest

from cubaturekit.hcubature import hcubature
from cubaturekit.testfuncs import (
    RADIUS,
    exact_integral,
    integrand,
    main,
    parse_integrands,
    sphere_surface,
)


def test_parse_integrands_splits_on_slash():
    assert parse_integrands("3/10/") == [3, 10, 0]
    assert parse_integrands("7") == [7]


def test_parse_integrands_rejects_other_characters():
    with pytest.raises(ValueError):
        parse_integrands("1a")


def test_unknown_integrand_raises():
    with pytest.raises(ValueError):
        integrand(8, [0.5])


def test_ball_indicator():
    assert integrand(2, [0.0, 0.0]) == 1.0
    assert integrand(2, [RADIUS, RADIUS]) == 0.0


def test_mapped_gaussian_vanishes_at_zero():
    assert integrand(1, [0.0, 0.5]) == 0.0


def test_sphere_surface_known_cases():
    assert sphere_surface(2) == pytest.approx(2 * math.pi)
    assert sphere_surface(3) == pytest.approx(4 * math.pi)


@pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 6, 7])
def test_sphere_surface_recurrence(n):
    assert sphere_surface(n + 2) == pytest.approx(2 * math.pi / n * sphere_surface(n))


def test_exact_integral_of_ball_in_plane():
    assert exact_integral(2, 2, [1, 1]) == pytest.approx(math.pi * RADIUS ** 2 / 4)


@pytest.mark.parametrize("which", [0, 3, 6])
def test_exact_integrals_match_cubature(which):
    result = hcubature(lambda x: [integrand(which, x)], 1, [0, 0], [1, 1],
                       req_rel_error=1e-8)
    assert result.val[0] == pytest.approx(exact_integral(which, 2, [1, 1]), rel=1e-6)


def test_main_without_arguments_prints_usage(capsys):
    assert main([]) == 1
    assert "Usage" in capsys.readouterr().err


def test_main_reports_integral(capsys):
    assert main(["2", "1e-6"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "2-dim integral, tolerance = 1e-06"
    assert lines[1].startswith("integrand 0: integral = ")
    true_err = float(lines[1].rsplit("true err = ", 1)[1])
    assert true_err < 1e-5
    assert int(lines[-1].split("=")[1]) > 0


def test_main_several_integrands_with_pcubature(capsys):
    assert main(["--pcubature", "2", "1e-8", "0/3"]) == 0
    lines = [l for l in capsys.readouterr().out.splitlines() if l.startswith("integrand")]
    assert len(lines) == 2
    for line in lines:
        assert float(line.rsplit("true err = ", 1)[1]) < 1e-6


def test_main_rejects_unknown_integrand(capsys):
    assert main(["2", "1e-3", "9"]) == 1
    assert "unknown integrand 9" in capsys.readouterr().err


def test_main_rejects_bad_spec(capsys):
    assert main(["2", "1e-3", "x"]) == 1
    assert "invalid which_integrand" in capsys.readouterr().err