# Gunicorn configuration
# Run with: gunicorn -c deploy/gunicorn.conf.py "classtrack:create_app('production')"
import multiprocessing

bind = "127.0.0.1:8000"
# Sweeps run inside the request, so keep enough sync workers free for other traffic
workers = multiprocessing.cpu_count() * 2 + 1
worker_class = "sync"
# A full pending sweep can take several minutes
timeout = 600
keepalive = 5
errorlog = "/var/log/classtrack/gunicorn-error.log"
accesslog = "/var/log/classtrack/gunicorn-access.log"
loglevel = "info"
