import os
import numpy as np

from climatesim.ocean_abm.utils import safe_log_exception

FRAME_FIELDS = ('id', 'kind', 'x', 'y', 'vx', 'vy', 'state', 'cause')


class FrameWriter:
    """Per-step writer of captured simulation frames as binary .npz files.

    Usage:
        with FrameWriter(output_dir) as fw:
            fw.write_field(collision)
            for frame in month_result.frames:
                fw.append(frame)

    Each frame becomes `step_{t:06d}.npz` holding one array per agent field
    (`id`, `kind`, `x`, `y`, `vx`, `vy`, `state`, `cause`) plus `phase`,
    and a line `t,phase,n_agents,filename` in `index.txt`. The collision
    field and its gradient go to `field.npz` so a viewer can draw the
    coastline under the agents.
    """

    def __init__(self, out_dir):
        self.out_dir = out_dir
        os.makedirs(self.out_dir, exist_ok=True)
        self.index_path = os.path.join(self.out_dir, 'index.txt')
        # line-buffered so a crashed run still leaves a usable index
        self._index_f = open(self.index_path, 'a', buffering=1)
        self.written = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    @staticmethod
    def frame_arrays(frame):
        agents = frame.agents
        return {
            'id': np.array([a.id for a in agents], dtype=np.int64),
            'kind': np.array([a.kind for a in agents], dtype=str),
            'x': np.array([a.x for a in agents], dtype=float),
            'y': np.array([a.y for a in agents], dtype=float),
            'vx': np.array([a.vx for a in agents], dtype=float),
            'vy': np.array([a.vy for a in agents], dtype=float),
            'state': np.array([a.state for a in agents], dtype=str),
            'cause': np.array([a.cause or '' for a in agents], dtype=str),
            'phase': np.array(frame.phase, dtype=np.int64),
        }

    def append(self, frame):
        """Write one captured frame. Failures are logged and skipped."""
        fn = os.path.join(self.out_dir, f'step_{frame.step:06d}.npz')
        try:
            np.savez(fn, **self.frame_arrays(frame))
            self._index_f.write(f'{frame.step},{frame.phase},{len(frame.agents)},{os.path.basename(fn)}\n')
            self.written += 1
        except (OSError, ValueError) as e:
            safe_log_exception('frame write failed', e, step=frame.step, path=fn)

    def write_field(self, collision):
        fn = os.path.join(self.out_dir, 'field.npz')
        try:
            np.savez(fn, field=collision.field, gx=collision.gx, gy=collision.gy)
        except (OSError, ValueError) as e:
            safe_log_exception('field write failed', e, path=fn)

    def close(self):
        if not self._index_f.closed:
            self._index_f.close()
