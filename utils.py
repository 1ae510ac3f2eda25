import os
from datetime import datetime


def get_target_run_folder(application_name: str, base_dir: str = "./runs") -> str:
    # one timestamped folder per run: <base_dir>/<application_name>/<YYYYmmdd_HHMMSS>
    target = os.path.join(base_dir, application_name, datetime.now().strftime('%Y%m%d_%H%M%S'))
    os.makedirs(target, exist_ok=True)
    return target
