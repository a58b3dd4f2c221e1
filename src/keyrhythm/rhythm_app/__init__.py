"""NiceGUI front end for keyrhythm (box plot + replay)."""
