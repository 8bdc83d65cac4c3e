import os
import unittest
from unittest.mock import patch, mock_open

from motion_dashboard.config import load_config


@patch.dict(os.environ, {}, clear=True)
class TestConfigSchema(unittest.TestCase):

    @patch('builtins.open', new_callable=mock_open)
    @patch('os.path.exists')
    @patch('motion_dashboard.config.yaml.safe_load')
    def test_valid_firebase_config(self, mock_yaml_load, mock_exists, mock_file):
        mock_exists.return_value = True
        mock_yaml_load.return_value = {
            'firebase': {'database_url': 'https://demo-default-rtdb.firebaseio.com'},
            'settings': {'sensor_location': 'Garage', 'retention_days': 7},
        }

        config = load_config()
        self.assertEqual(config['STORE_BACKEND'], 'firebase')
        self.assertEqual(config['FIREBASE_DATABASE_URL'], 'https://demo-default-rtdb.firebaseio.com')
        self.assertEqual(config['SENSOR_LOCATION'], 'Garage')
        self.assertEqual(config['RETENTION_DAYS'], 7)
        self.assertEqual(config['ALARM_KEY'], 'alarm')
        self.assertEqual(config['SYSTEM_KEY'], 'system')

    @patch('builtins.open', new_callable=mock_open)
    @patch('os.path.exists')
    @patch('motion_dashboard.config.yaml.safe_load')
    def test_mqtt_backend_config(self, mock_yaml_load, mock_exists, mock_file):
        mock_exists.return_value = True
        mock_yaml_load.return_value = {
            'store': {'backend': 'mqtt', 'alarm_key': 'alarm_msg'},
            'network': {
                'mqtt_broker': 'localhost',
                'mqtt_user': 'testuser',
                'mqtt_password': 'testpassword',
                'mqtt_topic_prefix': 'house/esp32',
            },
        }

        config = load_config()
        self.assertEqual(config['STORE_BACKEND'], 'mqtt')
        self.assertEqual(config['ALARM_KEY'], 'alarm_msg')
        self.assertEqual(config['MQTT_USER'], 'testuser')
        self.assertEqual(config['MQTT_PASSWORD'], 'testpassword')
        self.assertEqual(config['MQTT_TOPIC_PREFIX'], 'house/esp32')

    @patch('builtins.open', new_callable=mock_open)
    @patch('os.path.exists')
    @patch('motion_dashboard.config.yaml.safe_load')
    def test_invalid_backend_exits(self, mock_yaml_load, mock_exists, mock_file):
        mock_exists.return_value = True
        mock_yaml_load.return_value = {'store': {'backend': 'redis'}}

        with self.assertRaises(SystemExit):
            load_config()

    @patch('builtins.open', new_callable=mock_open)
    @patch('os.path.exists')
    @patch('motion_dashboard.config.yaml.safe_load')
    def test_wrong_type_exits(self, mock_yaml_load, mock_exists, mock_file):
        mock_exists.return_value = True
        mock_yaml_load.return_value = {'network': {'mqtt_port': 'not-a-port'}}

        with self.assertRaises(SystemExit):
            load_config()

    @patch('os.path.exists', return_value=False)
    def test_missing_database_url_raises(self, mock_exists):
        with self.assertRaises(ValueError) as ctx:
            load_config()
        self.assertIn('FIREBASE_DATABASE_URL', str(ctx.exception))

    @patch('os.path.exists', return_value=False)
    def test_mqtt_backend_requires_broker(self, mock_exists):
        with patch.dict(os.environ, {'STORE_BACKEND': 'mqtt'}):
            with self.assertRaises(ValueError) as ctx:
                load_config()
        self.assertIn('MQTT_BROKER', str(ctx.exception))

    @patch('os.path.exists', return_value=False)
    def test_unknown_backend_from_env_raises(self, mock_exists):
        with patch.dict(os.environ, {'STORE_BACKEND': 'redis', 'MQTT_BROKER': 'x'}):
            with self.assertRaises(ValueError):
                load_config()

    @patch('os.path.exists', return_value=False)
    def test_env_overrides(self, mock_exists):
        env = {
            'FIREBASE_DATABASE_URL': 'https://env.firebaseio.com',
            'FLASK_PORT': '8080',
            'FRESHNESS_CHECK_SECONDS': '10',
            'PUSHOVER_API_TOKEN': 'tok',
            'PUSHOVER_USER_KEY': 'uk',
        }
        with patch.dict(os.environ, env):
            config = load_config()
        self.assertEqual(config['FIREBASE_DATABASE_URL'], 'https://env.firebaseio.com')
        self.assertEqual(config['FLASK_PORT'], 8080)
        self.assertEqual(config['FRESHNESS_CHECK_SECONDS'], 10)
        self.assertEqual(config['pushover']['pushover_api_token'], 'tok')
        self.assertEqual(config['pushover']['pushover_user_key'], 'uk')

    @patch('builtins.open', new_callable=mock_open)
    @patch('os.path.exists')
    @patch('motion_dashboard.config.yaml.safe_load')
    def test_home_assistant_notifications_need_broker(self, mock_yaml_load, mock_exists, mock_file):
        mock_exists.return_value = True
        mock_yaml_load.return_value = {
            'firebase': {'database_url': 'https://demo.firebaseio.com'},
            'notifications': {'home_assistant': {'enabled': True}},
        }

        with self.assertRaises(ValueError):
            load_config()


if __name__ == '__main__':
    unittest.main()
