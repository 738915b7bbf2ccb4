import os
import tempfile

# Keep settings.ini, log files and the database out of the working tree
_workdir = tempfile.mkdtemp(prefix='merch_planning_tests_')
os.environ.setdefault('MERCH_PLANNING_CONFIG_DIR', os.path.join(_workdir, 'config'))
os.environ.setdefault('MERCH_PLANNING_LOG_DIR', os.path.join(_workdir, 'logs'))
os.environ.setdefault('MERCH_PLANNING_DB_URL', 'sqlite://')
