"""CLI shim -- delegates to iwork_pipeline.cli.main().

Usage:
    python iwork_convert.py document.pages document.txt
    python iwork_convert.py --box --token <BOX_TOKEN> --folder <FOLDER_ID>
"""

from iwork_pipeline.cli import main

if __name__ == "__main__":
    main()
