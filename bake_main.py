from export import bake_displacements, export_vdisp
from reader import read_vertex_animation

ORIGINAL_PATH   = './anims/original/vertex_animation.npz'
EXPORT_PATH     = './anims/exports/displacements.vdisp'
OBJECT_NAME     = 'Body'
FPS             = 24

def main():
    V, P, F = read_vertex_animation(ORIGINAL_PATH)
    D = bake_displacements(V, P)
    export_vdisp(EXPORT_PATH, [{OBJECT_NAME: d} for d in D], fps=FPS)

if __name__ == '__main__':
    main()
