from pathlib import Path

import PIL.Image
import pytest

import render
from scripts.generate_cli_examples import EXAMPLES

SMALL_ARGS = ['--width', '40', '--height', '30', '--max-iterations', '50']


def test_parser_defaults():
    opt = render.build_parser().parse_args([])
    assert (opt.width, opt.height, opt.max_iterations) == (800, 800, 1000)
    assert (opt.min_real, opt.max_real, opt.min_imag, opt.max_imag) == (-2.0, 1.0, -1.5, 1.5)
    assert opt.output == 'mandelbrot_fractal_pattern.png'
    assert opt.backend == 'tensorflow'


def test_main_writes_image(tmp_path, capsys):
    output = tmp_path / 'fractal.png'
    assert render.main([*SMALL_ARGS, '--output', str(output)]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out == [
        'Generating Mandelbrot...',
        'Mandelbrot generation complete.',
        'Image buffer size: 3600',
        'Image saved successfully!',
    ]
    with PIL.Image.open(output) as image:
        assert image.size == (40, 30)
        assert image.mode == 'RGB'


def test_main_appends_png_suffix(tmp_path):
    assert render.main([*SMALL_ARGS, '--backend', 'python', '--output', str(tmp_path / 'fractal')]) == 0
    assert (tmp_path / 'fractal.png').is_file()


def test_main_write_failure_exits_with_one(tmp_path, capsys):
    output = tmp_path / 'missing' / 'fractal.png'
    assert render.main([*SMALL_ARGS, '--output', str(output)]) == 1

    captured = capsys.readouterr()
    assert 'Failed to save the image!' in captured.err
    assert 'Image saved successfully!' not in captured.out
    assert not output.exists()


@pytest.mark.parametrize('args', [
    ['--width', '0'],
    ['--height', '-3'],
    ['--max-iterations', '0'],
    ['--output', 'fractal.jpg'],
    ['--backend', 'cuda'],
    ['--min-real', 'nan'],
    ['--max-imag', 'inf'],
])
def test_main_rejects_bad_arguments(args, capsys):
    with pytest.raises(SystemExit) as excinfo:
        render.main(args)
    assert excinfo.value.code == 1
    assert 'error:' in capsys.readouterr().err


class _FakeGpu:
    name = '/physical_device:GPU:0'


def test_select_device_without_gpu(monkeypatch):
    monkeypatch.setattr(render.tf.config, 'list_physical_devices', lambda kind: [])
    assert render.select_device() == '/CPU:0'


def test_select_device_with_gpu(monkeypatch):
    monkeypatch.setattr(render.tf.config, 'list_physical_devices', lambda kind: [_FakeGpu()])
    monkeypatch.setattr(render.tf.config.experimental, 'set_memory_growth', lambda gpu, enabled: None)
    assert render.select_device() == '/GPU:0'


def test_select_device_falls_back_to_cpu_when_gpu_is_initialized(monkeypatch):
    def set_memory_growth(gpu, enabled):
        raise RuntimeError('Physical devices cannot be modified after being initialized')

    monkeypatch.setattr(render.tf.config, 'list_physical_devices', lambda kind: [_FakeGpu()])
    monkeypatch.setattr(render.tf.config.experimental, 'set_memory_growth', set_memory_growth)
    assert render.select_device() == '/CPU:0'


def test_reference_configuration(tmp_path, capsys):
    output = tmp_path / 'reference.png'
    assert render.main(['--output', str(output)]) == 0
    assert 'Image buffer size: 1920000' in capsys.readouterr().out

    with PIL.Image.open(output) as image:
        assert image.size == (800, 800)
        assert len(image.tobytes()) == 1_920_000


@pytest.mark.parametrize('example', EXAMPLES, ids=lambda example: example.name)
def test_cli_examples_parse(example):
    opt = render.build_parser().parse_args([*example.args, '--output', str(example.output)])
    assert Path(opt.output).suffix == '.png'
