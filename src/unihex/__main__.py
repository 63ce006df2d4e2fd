"""
Entry point module, for ``python -m unihex``.

It runs the same command line group as the ``unihex`` console script, with
the program name fixed, so that usage messages do not show ``__main__.py``.
"""
from .cli import main as _main


def main(module_name):
    if module_name == '__main__':
        _main(prog_name='unihex')


main(__name__)
