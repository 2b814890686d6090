from dedupset.core.models import IndexMode, SetOperation

SET_OPERATION_ALIASES = {
    "union": SetOperation.UNION,
    "intersection": SetOperation.INTERSECTION,
    "intersect": SetOperation.INTERSECTION,
    "difference": SetOperation.DIFFERENCE,
    "diff": SetOperation.DIFFERENCE,
}

SET_OPERATION_CHOICES = list(SET_OPERATION_ALIASES.keys())

SET_OPERATION_HELP_TEXT = (
    "Set operation between two indexes (TARGET = A <op> B):\n"
    "  union          : Entries in A or B (entries in both are merged)\n"
    "  intersection   : Entries in both A and B (merged)\n"
    "  difference     : Entries in A but not in B\n"
    "Example:\n"
    "  %(prog)s set difference to_import laptop nas"
)

INDEX_MODE_ALIASES = {
    "files": IndexMode.FILES,
    "takeout": IndexMode.TAKEOUT,
    "google-photos-takeout": IndexMode.TAKEOUT,
}

INDEX_MODE_CHOICES = list(INDEX_MODE_ALIASES.keys())

INDEX_MODE_HELP_TEXT = (
    "How files are indexed:\n"
    "  files      : Every regular file\n"
    "  takeout    : Google Photos Takeout; <file>.json sidecars set the timestamp\n"
    "               and are materialized next to the file\n"
    "Default: files"
)

EPILOG_TEXT = """
Examples:
  Create a store in the current directory
  %(prog)s init

  Index two photo collections
  %(prog)s index add laptop ~/Pictures
  %(prog)s index add nas /mnt/nas/photos --mode takeout

  Find what is on the laptop but not on the NAS, then export it
  %(prog)s set difference to_import laptop nas
  %(prog)s materialize to_import /mnt/export

  Inspect indexes
  %(prog)s index list
  %(prog)s index stats laptop
  %(prog)s index show laptop

  Use another store file (or set DEDUPSET_DB)
  %(prog)s --db ~/archive.db index list
"""
