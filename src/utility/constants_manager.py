
from dotenv import load_dotenv, find_dotenv
import os

class ConstantsManager:
    _dotenv_loaded = False

    def __init__(self):
        if not ConstantsManager._dotenv_loaded:
            load_dotenv(dotenv_path=find_dotenv(usecwd=True), override=False)
            ConstantsManager._dotenv_loaded = True

    def get_variable(self, variableName, default=None):
        variable = os.environ.get(variableName, "")
        if variable == "":
            if default is None:
                raise Exception(f"Could not find {variableName} environment variable")
            return default
        return variable

    def get_int_variable(self, variableName, default):
        raw = self.get_variable(variableName, str(default))
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"{variableName} must be an integer, got {raw!r}")
        if value < 1:
            raise ValueError(f"{variableName} must be positive, got {value}")
        return value

    def get_scrypt_cost(self):
        cost = self.get_int_variable('STEGO_SCRYPT_COST', 2**14)
        # Scrypt requires n to be a power of two greater than 1
        if cost < 2 or cost & (cost - 1):
            raise ValueError(f"STEGO_SCRYPT_COST must be a power of two, got {cost}")
        return cost

    def get_max_workers(self):
        return self.get_int_variable('STEGO_MAX_WORKERS', 4)

    def get_max_carriers(self):
        return self.get_int_variable('STEGO_MAX_CARRIERS', 4)

    def get_log_level(self):
        return self.get_variable('STEGO_LOG_LEVEL', 'INFO').upper()

    def get_cors_origins(self):
        origins = self.get_variable('STEGO_CORS_ORIGINS', '*')
        return [origin.strip() for origin in origins.split(',') if origin.strip()]
