import os
import threading

from player import play_displacement_animation
from reader import VDispReader, read_rest_mesh, resolve_path

BASE_DIR        = os.path.dirname(os.path.abspath(__file__))
VDISP_PATH      = "anims/exports/displacements.vdisp"
# object name in the cache -> .npz holding its rest pose 'P' and faces 'F'
OBJECTS         = {
    "Body": "anims/original/vertex_animation.npz",
}

def play_object(reader, object_name, mesh_path):
    P, F = read_rest_mesh(resolve_path(mesh_path, BASE_DIR))
    play_displacement_animation(reader, P, F, object_name=object_name, cam_offset=-2)


if __name__ == '__main__':
    reader = VDispReader.open(resolve_path(VDISP_PATH, BASE_DIR))
    print(reader)
    for name, mesh_path in OBJECTS.items():
        threading.Thread(target=play_object, args=(reader, name, mesh_path)).start()
