"""Tests for the command line interface."""

import json

import pytest
from PIL import Image
from lumenforge.cli import build_parser, main


@pytest.fixture
def scene_file(tmp_path):
    path = tmp_path / "scene.json"
    path.write_text(json.dumps({
        'camera': {'look_from': [0, 0, 1], 'look_at': [0, 0, -1], 'vfov': 60},
        'render': {'width': 4, 'height': 3, 'samples': 1, 'max_depth': 3, 'threads': 1},
        'materials': {'blue': {'type': 'lambertian', 'albedo': [0.1, 0.2, 0.5]}},
        'objects': [
            {'type': 'sphere', 'center': [0, 0, -1], 'radius': 0.5, 'material': 'blue'},
            {'type': 'sphere', 'center': [0, -100.5, -1], 'radius': 100, 'material': 'blue'},
        ],
    }))
    return path


class TestParser:
    """Test argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.scene == 'final'
        assert args.output == '-'
        assert args.background is None
        assert args.width is None

    def test_background_flags(self):
        assert build_parser().parse_args(['--background']).background is True
        assert build_parser().parse_args(['--no-background']).background is False

    def test_unknown_scene(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--scene', 'teapot'])

    def test_verbose_and_quiet_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['-v', '-q'])


class TestMain:
    """Test the main entry point."""

    def test_list_scenes(self, capsys):
        assert main(['--list-scenes']) == 0
        out = capsys.readouterr().out.split()
        assert 'cornell_box' in out
        assert out == sorted(out)

    def test_render_scene_file(self, scene_file, tmp_path):
        output = tmp_path / "renders" / "out.ppm"
        assert main(['--scene-file', str(scene_file), '--seed', '1', '-q',
                     '--output', str(output)]) == 0

        lines = output.read_text().splitlines()
        assert lines[:4] == ['P3', '4', '3', '255']
        assert len(lines) == 4 + 4 * 3

    def test_overrides_scene_file(self, scene_file, tmp_path):
        output = tmp_path / "out.ppm"
        assert main(['--scene-file', str(scene_file), '--width', '6', '--height', '2',
                     '-q', '--output', str(output)]) == 0
        assert output.read_text().splitlines()[1:3] == ['6', '2']

    def test_seed_reproducible(self, scene_file, tmp_path):
        a = tmp_path / "a.ppm"
        b = tmp_path / "b.ppm"
        main(['--scene-file', str(scene_file), '--seed', '9', '-q', '--output', str(a)])
        main(['--scene-file', str(scene_file), '--seed', '9', '-q', '--output', str(b)])
        assert a.read_text() == b.read_text()

    def test_render_to_stdout(self, scene_file, capsys):
        assert main(['--scene-file', str(scene_file), '-q']) == 0
        assert capsys.readouterr().out.startswith('P3\n4\n3\n255\n')

    def test_demo_scene_png(self, tmp_path):
        output = tmp_path / "spheres.png"
        assert main(['--scene', 'two_spheres', '--width', '5', '--height', '4',
                     '--samples', '1', '--depth', '2', '--threads', '1', '--seed', '3',
                     '-q', '--output', str(output)]) == 0

        with Image.open(output) as img:
            assert img.size == (5, 4)

    def test_bad_scene_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("objects:\n  - type: torus\n")
        assert main(['--scene-file', str(path), '-q']) == 1

    def test_malformed_material_entry(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("materials: {white: 5}\n")
        assert main(['--scene-file', str(path), '-q']) == 1

    def test_object_without_material(self, tmp_path):
        path = tmp_path / "bare.yaml"
        path.write_text("objects:\n  - {type: sphere, radius: 1}\n")
        assert main(['--scene-file', str(path), '-q']) == 1

    def test_missing_scene_file(self, tmp_path):
        assert main(['--scene-file', str(tmp_path / "missing.yaml"), '-q']) == 1

    def test_empty_scene_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("render:\n  width: 2\n  height: 2\n")
        assert main(['--scene-file', str(path), '-q']) == 1

    def test_invalid_settings(self, scene_file):
        assert main(['--scene-file', str(scene_file), '--samples', '0', '-q']) == 1

    def test_unsupported_output(self, scene_file, tmp_path):
        assert main(['--scene-file', str(scene_file), '-q',
                     '--output', str(tmp_path / "out.xyz")]) == 1
