#!/usr/bin/env python3
"""
Flask Web UI for the AD Reconciliation Tool
Upload an HR export, run a reconciliation workflow and download the report
"""

import os
import logging
import uuid
from pathlib import Path
from datetime import datetime
from flask import Flask, render_template, request, redirect, url_for, send_file, flash, jsonify
from werkzeug.utils import secure_filename

from core.ad_client import ActiveDirectoryClient
from core.exceptions import ColumnMappingError
from processors.job_change import JobChangeProcessor
from processors.leave_audit import LeaveAuditProcessor
from processors.manager_sync import ManagerSyncProcessor
from processors.termination import TerminationProcessor
from processors.training import TrainingComplianceProcessor
from utils.config import Config

app = Flask(__name__)
app.secret_key = os.environ.get('FLASK_SECRET_KEY', 'your-secret-key-change-this')

# Configuration
UPLOAD_FOLDER = 'uploads'
OUTPUT_FOLDER = 'downloads'
ALLOWED_EXTENSIONS = {'csv'}
MAX_FILE_SIZE = 16 * 1024 * 1024  # 16MB max file size

os.makedirs(UPLOAD_FOLDER, exist_ok=True)
os.makedirs(OUTPUT_FOLDER, exist_ok=True)

PROCESSORS = {
    'manager_sync': {
        'name': 'Manager Sync',
        'description': 'HR manager changes compared with the AD manager attribute',
        'class': ManagerSyncProcessor
    },
    'job_change': {
        'name': 'Job Change',
        'description': 'Manager and job title changes, with title/description write-back',
        'class': JobChangeProcessor
    },
    'leave_audit': {
        'name': 'Leave Audit',
        'description': 'Account state and group membership for employees on leave',
        'class': LeaveAuditProcessor
    },
    'termination': {
        'name': 'Termination Audit',
        'description': 'Terminated employees with mailbox suspension action',
        'class': TerminationProcessor
    },
    'training': {
        'name': 'Training Compliance',
        'description': 'Employees with incomplete training and their managers',
        'class': TrainingComplianceProcessor
    }
}


def allowed_file(filename):
    """Check if file extension is allowed"""
    if '.' not in filename:
        return False
    return filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def setup_logging():
    """Setup logging for the web application"""
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"webapp_{timestamp}.log"

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_filename),
            logging.StreamHandler()
        ]
    )


@app.route('/')
def index():
    """Main page with upload form"""
    return render_template('index.html', processors=PROCESSORS)


@app.route('/upload', methods=['POST'])
def upload_file():
    """Handle file upload and processing"""
    try:
        if 'file' not in request.files:
            flash('No file selected', 'error')
            return redirect(url_for('index'))

        file = request.files['file']
        processor_type = request.form.get('processor')
        no_filters = request.form.get('no_filters') == 'on'
        apply_updates = request.form.get('apply_updates') == 'on'
        groups = [group.strip() for group in request.form.get('groups', '').split(',') if group.strip()]

        if file.filename == '':
            flash('No file selected', 'error')
            return redirect(url_for('index'))

        if not processor_type or processor_type not in PROCESSORS:
            flash('Invalid workflow selected', 'error')
            return redirect(url_for('index'))

        if not allowed_file(file.filename):
            flash('Invalid file type. Upload a CSV export', 'error')
            return redirect(url_for('index'))

        # Check file size
        file.seek(0, 2)
        file_size = file.tell()
        file.seek(0)

        if file_size > MAX_FILE_SIZE:
            flash(f'File too large. Maximum size: {MAX_FILE_SIZE // (1024 * 1024)}MB', 'error')
            return redirect(url_for('index'))

        job_id = str(uuid.uuid4())

        filename = secure_filename(file.filename)
        input_path = os.path.join(UPLOAD_FOLDER, f"{job_id}_{filename}")
        file.save(input_path)

        result = process_file(job_id, input_path, processor_type, no_filters, apply_updates, groups)

        if result['success']:
            return render_template('results.html',
                                   job_id=job_id,
                                   processor_name=PROCESSORS[processor_type]['name'],
                                   stats=result.get('stats'),
                                   output_files=result.get('output_files', []))
        else:
            flash(f'Processing failed: {result["error"]}', 'error')
            return redirect(url_for('index'))

    except Exception as e:
        app.logger.error(f"Upload error: {str(e)}")
        flash(f'An error occurred: {str(e)}', 'error')
        return redirect(url_for('index'))


def process_file(job_id, input_path, processor_type, no_filters, apply_updates, groups):
    """Run the selected workflow on the uploaded file"""
    try:
        app.logger.info(f"Starting processing job {job_id} with workflow {processor_type}")

        config = Config()
        if not config.validate_ad_config():
            missing_vars = config.get_missing_ad_vars()
            return {
                'success': False,
                'error': f'Missing AD configuration: {", ".join(missing_vars)}'
            }

        processor_class = PROCESSORS[processor_type]['class']

        try:
            records = processor_class.load_records(input_path)
        except ColumnMappingError as e:
            return {'success': False, 'error': str(e)}

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = os.path.join(OUTPUT_FOLDER, f"{job_id}_{processor_type}_{timestamp}.csv")

        with ActiveDirectoryClient(**config.ad_client_settings()) as ad_client:
            processor = processor_class(ad_client, tracked_groups=config.tracked_groups + groups)
            processing_stats = processor.process_users(
                records,
                output_path,
                apply_filters=not no_filters,
                # The checkbox on the form is the confirmation
                apply_updates=apply_updates and processor_class.SUPPORTS_UPDATES
            )

        output_files = []
        if os.path.exists(output_path):
            output_files.append({
                'filename': os.path.basename(output_path),
                'description': 'Reconciliation report'
            })

        updates_path = processor_class.updates_output_path(output_path)
        if os.path.exists(updates_path):
            output_files.append({
                'filename': os.path.basename(updates_path),
                'description': 'Applied updates'
            })

        stats = {
            'total_records': processing_stats.total_records,
            'found': processing_stats.found,
            'not_found': processing_stats.not_found,
            'errors': processing_stats.errors,
            'manager_mismatches': processing_stats.manager_mismatches,
            'updates': {status.value: count for status, count in processing_stats.update_counts.items()},
            'success_rate': processing_stats.success_rate
        }

        app.logger.info(f"Processing job {job_id} completed successfully")
        return {
            'success': True,
            'output_files': output_files,
            'stats': stats
        }

    except Exception as e:
        app.logger.error(f"Processing job {job_id} failed: {str(e)}")
        return {
            'success': False,
            'error': str(e)
        }
    finally:
        try:
            if os.path.exists(input_path):
                os.remove(input_path)
        except OSError as e:
            app.logger.warning(f"Could not remove upload {input_path}: {e}")


@app.route('/download/<filename>')
def download_file(filename):
    """Download processed file"""
    try:
        file_path = os.path.join(OUTPUT_FOLDER, secure_filename(filename))
        if not os.path.exists(file_path):
            flash('File not found', 'error')
            return redirect(url_for('index'))

        return send_file(os.path.abspath(file_path), as_attachment=True)

    except Exception as e:
        app.logger.error(f"Download error: {str(e)}")
        flash('Error downloading file', 'error')
        return redirect(url_for('index'))


@app.route('/health')
def health_check():
    """Health check endpoint"""
    config = Config()
    ad_config_valid = config.validate_ad_config()

    return jsonify({
        'status': 'healthy' if ad_config_valid else 'configuration_error',
        'ad_config_valid': ad_config_valid,
        'processors_available': list(PROCESSORS.keys())
    })


if __name__ == '__main__':
    setup_logging()

    config = Config()
    if not config.validate_ad_config():
        missing_vars = config.get_missing_ad_vars()
        app.logger.warning(f"Missing AD configuration: {', '.join(missing_vars)}")
    else:
        app.logger.info("AD configuration validated successfully")

    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'

    app.logger.info(f"Starting AD Reconciliation Web UI on port {port}")
    app.run(host='0.0.0.0', port=port, debug=debug)
