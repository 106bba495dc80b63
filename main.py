# main.py

import argparse
import sys

from PyQt5.QtWidgets import QApplication
from PyQt5.QtCore import QTranslator, QLibraryInfo, QLocale

from processing.session import MAX_BRUSH


def parse_args(argv):
    parser = argparse.ArgumentParser(description="Distort an image by dragging smear, blur and pixelate brushes.")
    parser.add_argument("--max-brush", type=int, default=MAX_BRUSH,
                        help=f"largest brush size in pixels (default: {MAX_BRUSH})")
    # Qt consumes its own arguments (-style, -platform, ...).
    args, _ = parser.parse_known_args(argv)
    if args.max_brush < 1:
        parser.error("--max-brush must be at least 1")
    return args


if __name__ == "__main__":
    args = parse_args(sys.argv[1:])
    app = QApplication(sys.argv)

    translator = QTranslator()
    if translator.load("qt_%s" % QLocale.system().name(), QLibraryInfo.location(QLibraryInfo.TranslationsPath)):
        app.installTranslator(translator)

    from gui.main_window import MainWindow

    main_window = MainWindow(max_brush=args.max_brush)
    main_window.show()

    sys.exit(app.exec_())
