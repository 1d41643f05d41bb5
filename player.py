import os
import time

import numpy as np

from errors import FrameError

LOG_PREFIX = "[VDispLoader]"


def apply_displacements(rest: np.ndarray, displacements: np.ndarray) -> np.ndarray:
    """Displaced vertex positions: rest (N, 3) + displacements (N, 3)."""
    return np.asarray(rest, dtype=np.float64) + displacements


def report_frame(result, frame_index, object_name, path):
    """
    Print the warning-level conditions of a decoded frame and return the messages.
    """
    messages = []
    if not result.found:
        messages.append(f"{LOG_PREFIX} Object '{object_name}' not found in frame {frame_index} "
                        f"of {os.path.basename(path)}.")
    elif result.vertex_count_mismatch:
        messages.append(f"{LOG_PREFIX} object vertex count {result.stored_vertex_count} != "
                        f"mesh vertex count {len(result.displacements)}. Read "
                        f"{min(result.stored_vertex_count, len(result.displacements))} vertices.")
    if result.truncated:
        messages.append(f"{LOG_PREFIX} frame {frame_index} ended mid-record; kept what was read.")
    for m in messages:
        print(m)
    return messages


class FrameFollower:
    """
    Keeps one object's displacements in sync with a requested frame index.

    The file is only read again when the requested frame changes. A frame that fails to
    decode is reported and the previous displacements are kept.
    """

    def __init__(self, reader, object_name, vertex_count):
        self.reader = reader
        self.object_name = object_name
        self.displacements = np.zeros((vertex_count, 3), dtype=np.float32)
        self.last_frame_index = None

    def follow(self, frame_index):
        """Load `frame_index` if it differs from the last one. Returns the FrameResult or None."""
        if frame_index == self.last_frame_index:
            return None
        return self.reload(frame_index)

    def reload(self, frame_index=None):
        if frame_index is None:
            frame_index = self.last_frame_index
        self.last_frame_index = frame_index
        try:
            result = self.reader.load_frame(frame_index, self.object_name, len(self.displacements))
        except FrameError as e:
            print(f"{LOG_PREFIX} {e}")
            return None
        report_frame(result, frame_index, self.object_name, self.reader.path)
        self.displacements = result.displacements
        return result


def play_displacement_animation(reader, rest, faces=None, object_name="", fps=None, cam_offset=0.0):
    """
    Play a .vdisp cache over a rest mesh using Open3D, looping until the window is closed.

    Parameters:
    - reader (VDispReader): opened displacement cache.
    - rest (np.ndarray): Rest vertex positions, shape (N, 3).
    - faces (np.ndarray, optional): Face indices, shape (M, 3). Default None.
    - object_name (str): Object to read from each frame.
    - fps (int, optional): Frames per second for playback, the file's fps by default.
    - cam_offset (float): Offset to move the camera down along its up vector.
    """
    import open3d as o3d

    if fps is None:
        fps = reader.header.fps if reader.header.fps > 0 else 24
    frames = reader.frame_count()
    follower = FrameFollower(reader, object_name, len(rest))
    follower.follow(0)
    coords = apply_displacements(rest, follower.displacements)

    vis = o3d.visualization.Visualizer()
    vis.create_window(f'VDISP {object_name}')

    # Prepare geometry
    if faces is not None:
        mesh = o3d.geometry.TriangleMesh(
            vertices=o3d.utility.Vector3dVector(coords),
            triangles=o3d.utility.Vector3iVector(faces)
        )
        mesh.compute_vertex_normals()
        mesh.paint_uniform_color([0.8, 0.8, 0.8])
        vis.add_geometry(mesh)
        # Wireframe edges
        edges = set()
        for a, b, c in faces:
            edges |= {(min(a, b), max(a, b)), (min(b, c), max(b, c)), (min(c, a), max(c, a))}
        lines = np.array(list(edges), dtype=np.int32)
        line_set = o3d.geometry.LineSet(
            points=o3d.utility.Vector3dVector(coords),
            lines=o3d.utility.Vector2iVector(lines)
        )
        line_set.colors = o3d.utility.Vector3dVector([[0.2, 0.2, 0.2]] * len(lines))
        vis.add_geometry(line_set)
        geom_mesh, geom_lines = mesh, line_set
    else:
        pcd = o3d.geometry.PointCloud(points=o3d.utility.Vector3dVector(coords))
        vis.add_geometry(pcd)
        geom_mesh, geom_lines = pcd, None

    # Rendering options
    opt = vis.get_render_option()
    opt.mesh_show_back_face = True
    opt.light_on = False

    # Adjust camera
    ctr = vis.get_view_control()
    params = ctr.convert_to_pinhole_camera_parameters()
    extr = params.extrinsic.copy()
    up = extr[:3, 1]
    extr[:3, 3] -= up * cam_offset
    params.extrinsic = extr
    ctr.convert_from_pinhole_camera_parameters(params)

    interval = 1.0 / fps
    frame_idx = 0
    while vis.poll_events():  # returns False once window is closed
        if follower.follow(frame_idx) is not None:
            coords = apply_displacements(rest, follower.displacements)
            if faces is not None:
                geom_mesh.vertices = o3d.utility.Vector3dVector(coords)
                geom_lines.points = o3d.utility.Vector3dVector(coords)
            else:
                geom_mesh.points = o3d.utility.Vector3dVector(coords)
            vis.update_geometry(geom_mesh)
            if geom_lines:
                vis.update_geometry(geom_lines)
        vis.update_renderer()

        frame_idx = (frame_idx + 1) % frames
        time.sleep(interval)

    vis.destroy_window()
