import os
import configparser
from pathlib import Path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Written to settings.ini the first time the engine starts
DEFAULT_SETTINGS = {
    'DATABASE': {
        'url': 'sqlite:///merch_planning.db',
        'echo': 'False',
    },
    'LOGGING': {
        'level': 'INFO',
        'format': LOG_FORMAT,
        'directory': 'logs',
        'max_size_mb': '10',
        'backup_count': '5',
        'console_output': 'True',
    },
    'PLANNING': {
        'default_plan_qty': '100',
        'default_target_sell_through': '70',
        'default_category': 'Clothing',
        'default_season_suffix': 'S/S',
        'season_option_years': '3',
    },
    # Clearance velocity heuristic, see core/clearance.py
    'CLEARANCE': {
        'base_daily_velocity_rate': '0.01',
        'min_daily_sales': '1.0',
        'discount_velocity_factor': '2.0',
    },
    # Brand name -> SKU code prefix
    'BRANDS': {
        '밸롭': 'B',
        '웨이든': 'W',
        '부기프리': 'F',
        '파스티야': 'P',
    },
    # Planner stamped as author on products saved without one
    'PROFILE': {
        'name': '',
        'department': '',
    },
}

class Config:
    """Configuration manager for the Merchandise Planning Engine.

    Settings live in ``settings.ini`` under ``$MERCH_PLANNING_CONFIG_DIR``
    (``./config`` by default). ``$MERCH_PLANNING_DB_URL`` and
    ``$MERCH_PLANNING_LOG_DIR`` override the database URL and log directory.
    """

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config_dir = Path(os.environ.get('MERCH_PLANNING_CONFIG_DIR', 'config'))
        self._config_path = self._config_dir / 'settings.ini'
        self._config = configparser.ConfigParser(interpolation=None)
        # Brand names are keys, keep their case
        self._config.optionxform = str
        self._config_dir.mkdir(parents=True, exist_ok=True)

        if self._config_path.exists():
            self._config.read(self._config_path, encoding='utf-8')
        else:
            self._config.read_dict(DEFAULT_SETTINGS)
            self._save_config()

        self._initialized = True

    def _save_config(self):
        with open(self._config_path, 'w', encoding='utf-8') as configfile:
            self._config.write(configfile)

    def _lookup(self, getter, section, key, default):
        try:
            return getter(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get(self, section, key, default=None):
        """Get configuration value as a string."""
        return self._lookup(self._config.get, section, key, default)

    def get_int(self, section, key, default=None):
        return self._lookup(self._config.getint, section, key, default)

    def get_float(self, section, key, default=None):
        return self._lookup(self._config.getfloat, section, key, default)

    def get_boolean(self, section, key, default=None):
        return self._lookup(self._config.getboolean, section, key, default)

    def set(self, section, key, value):
        """Set a configuration value and persist it."""
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))
        self._save_config()

    def get_db_url(self):
        """SQLAlchemy URL; ``$MERCH_PLANNING_DB_URL`` overrides the file."""
        return os.environ.get(
            'MERCH_PLANNING_DB_URL',
            self.get('DATABASE', 'url', DEFAULT_SETTINGS['DATABASE']['url'])
        )

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', LOG_FORMAT),
            'directory': os.environ.get('MERCH_PLANNING_LOG_DIR', self.get('LOGGING', 'directory', 'logs')),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True)
        }

    @property
    def planning_defaults(self):
        """Values applied to a freshly created product plan."""
        return {
            'plan_qty': self.get_int('PLANNING', 'default_plan_qty', 100),
            'target_sell_through': self.get_float('PLANNING', 'default_target_sell_through', 70.0),
            'category': self.get('PLANNING', 'default_category', 'Clothing'),
            'season_suffix': self.get('PLANNING', 'default_season_suffix', 'S/S'),
            'season_option_years': self.get_int('PLANNING', 'season_option_years', 3)
        }

    @property
    def clearance_policy(self):
        """Keyword arguments for core.clearance.simulate_clearance()."""
        return {
            'base_daily_velocity_rate': self.get_float('CLEARANCE', 'base_daily_velocity_rate', 0.01),
            'min_daily_sales': self.get_float('CLEARANCE', 'min_daily_sales', 1.0),
            'discount_velocity_factor': self.get_float('CLEARANCE', 'discount_velocity_factor', 2.0)
        }

    @property
    def brand_prefixes(self):
        if not self._config.has_section('BRANDS'):
            return {}
        return dict(self._config.items('BRANDS'))

    @property
    def profile(self):
        return {
            'name': self.get('PROFILE', 'name', ''),
            'department': self.get('PROFILE', 'department', '')
        }

# Global config instance
config = Config()
