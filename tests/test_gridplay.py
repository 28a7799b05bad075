import json

import numpy as np
from PIL import Image

import gridplay


def test_dry_run_plays_frames(tmp_path, capsys):
    path = tmp_path / 'frames.json'
    path.write_text(json.dumps({'frames': [[[1, 0], [0, 0]], [[0, 0], [0, 1]]]}))

    code = gridplay.main(['--frames', str(path), '--dry-run', '--interval', '0', '--cleanup'])

    assert code == 0
    out = capsys.readouterr().out
    assert 'Frames rendered: 2 on a 2x2 grid' in out
    assert 'Operations: 1 add, 0 delete, 1 move' in out


def test_mismatched_frames_fail(tmp_path, capsys):
    path = tmp_path / 'frames.json'
    path.write_text(json.dumps([[[1, 0]], [[1, 0, 1]]]))

    code = gridplay.main(['--frames', str(path), '--dry-run', '--interval', '0'])

    assert code == 1
    assert 'Render error' in capsys.readouterr().out


def test_export_gif(tmp_path):
    gif = tmp_path / 'anim.gif'
    images = [Image.fromarray(np.array(f, dtype=np.uint8) * 255) for f in ([[1, 0]], [[0, 1]])]
    images[0].save(gif, save_all=True, append_images=images[1:], duration=100, loop=0)
    out = tmp_path / 'frames.json'

    code = gridplay.main(['--gif', str(gif), '--export', str(out)])

    assert code == 0
    assert json.loads(out.read_text()) == {'frames': [[[1, 0]], [[0, 1]]]}
