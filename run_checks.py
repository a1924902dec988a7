from fastapi.testclient import TestClient
from city_reporter.main import app

client = TestClient(app, raise_server_exceptions=False)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nDB HEALTH:')
resp = client.get('/health/db')
print(resp.status_code)
print(resp.json())

print('\nSTATISTICS:')
resp = client.get('/statistics/status')
print(resp.status_code)
print(resp.json())
