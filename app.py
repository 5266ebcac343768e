"""
Interactive Bayesian Coin-Flip Explorer

A Dash-based web application for drawing a prior over a coin's bias and
watching grid and Metropolis posteriors update as coins are flipped.
Run with: python app.py
Then open http://localhost:8050 in your browser.
"""

import logging
import sys
sys.path.insert(0, "./src")

import numpy as np
import pandas as pd
from dash import Dash, html, dcc, callback, Output, Input, State, ctx, no_update
import plotly.graph_objects as go

from bayesian_coin import BeliefEngine
from coin_config import (
    APP_NAME, DEFAULT_INITIAL_GUESS, DEFAULT_SAMPLE_COUNT, DEFAULT_STEP_SIZE, HOST, LOG_LEVEL,
    MODE_BATCH, MODE_GRID, MODE_INCREMENTAL, PORT, PRIOR_DEFAULTS, SAMPLE_COUNT_CHOICES,
    STEP_SIZE_CHOICES, STEPS_PER_TICK, TICK_INTERVAL_MS,
)
from logging_config import setup_logging
from utils import belief_frame, mk_prior, sketch_from_shapes

logger = logging.getLogger(__name__)


# Global state for the explorer
class SimulationState:
    def __init__(self):
        self.engine = BeliefEngine()
        self.reset()

    def reset(self):
        self.engine.clear()
        self.clear_history()

    def clear_history(self):
        self.stats_history = []
        self.true_prob_history = []

    def set_prior(self, prior):
        self.engine.set_prior(prior)
        self.clear_history()

    def clear_data(self):
        self.engine.reset_observations()
        self.clear_history()

    def flip(self, n_flips, true_prob):
        if not self.engine.has_prior:
            return
        flips = np.random.binomial(1, true_prob, size=n_flips)
        self.engine.record(flips)
        mean, std, _ = self.engine.stats('posterior')
        self.stats_history.append((self.engine.counts.total, mean, std))
        self.true_prob_history.append(true_prob)

    def get_dataframe(self):
        if not self.stats_history:
            return None
        df = pd.DataFrame(self.stats_history, columns=['Flips', 'Mean', 'Std'])
        df['true_prob'] = self.true_prob_history
        return df


state = SimulationState()

# Create the Dash app
app = Dash(__name__, suppress_callback_exceptions=True, title=APP_NAME)

PARAM_SLOTS = 3

button_style = {'width': '100%', 'padding': '8px', 'marginBottom': '10px', 'color': 'white',
                'border': 'none', 'borderRadius': '5px', 'cursor': 'pointer'}


def param_input(slot):
    return html.Div([
        html.Label(id=f'param-label-{slot}', style={'fontSize': '12px'}),
        dcc.Input(id=f'param-{slot}', type='text', debounce=True, style={'width': '100%'}),
    ], id=f'param-box-{slot}', style={'flex': '1', 'marginRight': '5px'})


def empty_sketch_figure():
    fig = go.Figure()
    fig.update_layout(
        dragmode='drawopenpath',
        newshape=dict(line=dict(color='#1e64dc', width=3)),
        xaxis=dict(range=[0, 1], fixedrange=True, title='π'),
        yaxis=dict(range=[0, 1], fixedrange=True, showticklabels=False),
        template='plotly_white',
        margin=dict(l=20, r=10, t=10, b=30),
        height=180,
    )
    return fig


controls = html.Div([
    html.H3("Prior", style={'color': '#34495e'}),

    dcc.Dropdown(id='prior-family', options=[
        {'label': 'Uniform', 'value': 'uniform'},
        {'label': 'Normal', 'value': 'normal'},
        {'label': 'Beta', 'value': 'beta'},
        {'label': 'Exponential', 'value': 'exponential'},
        {'label': 'Energy Trap', 'value': 'energy_trap'},
    ], value='uniform', clearable=False, style={'marginBottom': '10px'}),

    html.Div([param_input(slot) for slot in range(PARAM_SLOTS)],
             style={'display': 'flex', 'marginBottom': '10px'}),

    html.Button('Set Prior', id='prior-btn', n_clicks=0,
                style={**button_style, 'backgroundColor': '#2980b9'}),

    html.Label("Or draw one:"),
    dcc.Graph(id='sketch-plot', figure=empty_sketch_figure(),
              config={'modeBarButtonsToAdd': ['drawopenpath', 'eraseshape'], 'displaylogo': False}),
    html.Div([
        html.Button('Use Drawing', id='sketch-btn', n_clicks=0,
                    style={**button_style, 'backgroundColor': '#2980b9', 'marginRight': '5px'}),
        html.Button('Erase', id='erase-btn', n_clicks=0,
                    style={**button_style, 'backgroundColor': '#7f8c8d'}),
    ], style={'display': 'flex'}),

    html.Div(id='prior-error', style={'color': '#c0392b', 'fontSize': '12px', 'marginBottom': '10px'}),

    html.Div([
        html.Button('Reset', id='reset-btn', n_clicks=0,
                    style={**button_style, 'backgroundColor': '#e74c3c', 'marginRight': '5px'}),
        html.Button('Clear Data', id='clear-btn', n_clicks=0,
                    style={**button_style, 'backgroundColor': '#e67e22'}),
    ], style={'display': 'flex'}),

    html.Hr(),

    html.H3("Flips", style={'color': '#34495e'}),

    html.Div([
        html.Label("True p(head):"),
        html.Div([
            html.Div([
                dcc.Slider(id='true-prob-slider', min=0, max=1, step=0.01, value=0.5,
                           marks={0: '0', 0.25: '0.25', 0.5: '0.5', 0.75: '0.75', 1: '1'},
                           tooltip={'placement': 'bottom', 'always_visible': False}),
            ], style={'flex': '1', 'marginRight': '10px'}),
            dcc.Input(id='true-prob-input', type='text', value='0.5', debounce=True,
                      style={'width': '60px', 'textAlign': 'center'}),
        ], style={'display': 'flex', 'alignItems': 'center'}),
    ], style={'marginBottom': '10px'}),

    html.Div([
        html.Button('+1', id='flip-1', n_clicks=0,
                    style={**button_style, 'backgroundColor': '#27ae60', 'marginRight': '5px'}),
        html.Button('+10', id='flip-10', n_clicks=0,
                    style={**button_style, 'backgroundColor': '#27ae60', 'marginRight': '5px'}),
        html.Button('+100', id='flip-100', n_clicks=0,
                    style={**button_style, 'backgroundColor': '#27ae60', 'marginRight': '5px'}),
        html.Button('Auto ▶', id='auto-btn', n_clicks=0,
                    style={**button_style, 'backgroundColor': '#16a085'}),
    ], style={'display': 'flex'}),

    html.Hr(),

    html.H3("Algorithm", style={'color': '#34495e'}),

    dcc.RadioItems(id='mode', options=[
        {'label': ' Grid approximation', 'value': MODE_GRID},
        {'label': ' Metropolis', 'value': MODE_BATCH},
        {'label': ' Metropolis, each iteration', 'value': MODE_INCREMENTAL},
    ], value=MODE_GRID, style={'marginBottom': '10px'}),

    html.Label("Step size:"),
    dcc.Dropdown(id='step-size', options=[{'label': f'{s:g}', 'value': s} for s in STEP_SIZE_CHOICES],
                 value=DEFAULT_STEP_SIZE, clearable=False, style={'marginBottom': '10px'}),

    html.Label("Initial guess:"),
    dcc.Input(id='initial-guess', type='text', value=str(DEFAULT_INITIAL_GUESS), debounce=True,
              style={'width': '100%', 'marginBottom': '10px'}),

    html.Label("Samples:"),
    dcc.Dropdown(id='sample-count', options=[{'label': f'{s:,}', 'value': s} for s in SAMPLE_COUNT_CHOICES],
                 value=DEFAULT_SAMPLE_COUNT, clearable=False, style={'marginBottom': '10px'}),

    html.Div(id='config-error', style={'color': '#c0392b', 'fontSize': '12px', 'marginBottom': '10px'}),

    html.Button('Reset Chain', id='chain-reset-btn', n_clicks=0,
                style={**button_style, 'backgroundColor': '#8e44ad'}),

    html.Hr(),

    html.Div(id='current-stats', style={'marginTop': '20px'}),

], style={'width': '25%', 'padding': '20px', 'backgroundColor': '#ecf0f1',
          'borderRadius': '10px', 'marginRight': '20px'})


app.layout = html.Div([
    html.H1("Draw a Prior: Bayesian Coin-Flip Explorer",
            style={'textAlign': 'center', 'color': '#2c3e50', 'marginBottom': '20px'}),

    html.Div([
        controls,
        html.Div([
            dcc.Graph(id='belief-plot', style={'height': '500px'}),
            dcc.Graph(id='stats-plot', style={'height': '300px'}),
        ], style={'width': '75%'}),
    ], style={'display': 'flex', 'padding': '20px'}),

    dcc.Interval(id='tick', interval=TICK_INTERVAL_MS, n_intervals=0, disabled=True),

    # Stores for tracking state changes
    dcc.Store(id='sketch-store', data=[]),
    dcc.Store(id='prior-store', data=0),
    dcc.Store(id='flip-store', data=0),
    dcc.Store(id='config-store', data=0),
    dcc.Store(id='tick-store', data=0),
    dcc.Store(id='auto-store', data=False),

], style={'fontFamily': 'Arial, sans-serif', 'backgroundColor': '#f5f6fa'})


def safe_float(val, default):
    """Safely convert value to float, returning default on failure."""
    try:
        if val is not None and str(val).strip() != '':
            return float(val)
    except (ValueError, TypeError):
        pass
    return default


@callback(
    *[Output(f'param-label-{slot}', 'children') for slot in range(PARAM_SLOTS)],
    *[Output(f'param-{slot}', 'value') for slot in range(PARAM_SLOTS)],
    *[Output(f'param-box-{slot}', 'style') for slot in range(PARAM_SLOTS)],
    Input('prior-family', 'value'),
)
def update_param_inputs(family):
    """Show one input per hyperparameter of the chosen family."""
    names = list(PRIOR_DEFAULTS[family])
    labels, values, styles = [], [], []
    for slot in range(PARAM_SLOTS):
        if slot < len(names):
            labels.append(f'{names[slot]}:')
            values.append(str(PRIOR_DEFAULTS[family][names[slot]]))
            styles.append({'flex': '1', 'marginRight': '5px'})
        else:
            labels.append('')
            values.append('')
            styles.append({'display': 'none'})
    return (*labels, *values, *styles)


@callback(
    Output('sketch-store', 'data'),
    Input('sketch-plot', 'relayoutData'),
    prevent_initial_call=True
)
def store_sketch(relayout_data):
    if not relayout_data or 'shapes' not in relayout_data:
        return no_update
    return relayout_data['shapes']


@callback(
    Output('sketch-plot', 'figure'),
    Input('erase-btn', 'n_clicks'),
    prevent_initial_call=True
)
def erase_sketch(n_clicks):
    return empty_sketch_figure()


@callback(
    Output('prior-store', 'data'),
    Output('prior-error', 'children'),
    Input('prior-btn', 'n_clicks'),
    Input('sketch-btn', 'n_clicks'),
    Input('reset-btn', 'n_clicks'),
    Input('clear-btn', 'n_clicks'),
    State('prior-family', 'value'),
    *[State(f'param-{slot}', 'value') for slot in range(PARAM_SLOTS)],
    State('sketch-store', 'data'),
    State('prior-store', 'data'),
    prevent_initial_call=True
)
def change_prior(prior_clicks, sketch_clicks, reset_clicks, clear_clicks, family, *rest):
    *param_values, shapes, version = rest
    triggered_id = ctx.triggered_id

    try:
        if triggered_id == 'prior-btn':
            names = list(PRIOR_DEFAULTS[family])
            params = {name: safe_float(value, PRIOR_DEFAULTS[family][name])
                      for name, value in zip(names, param_values)}
            state.set_prior(mk_prior(family, **params))
        elif triggered_id == 'sketch-btn':
            state.set_prior(sketch_from_shapes(shapes))
        elif triggered_id == 'reset-btn':
            state.reset()
        elif triggered_id == 'clear-btn':
            state.clear_data()
    except ValueError as err:
        logger.warning('Rejected prior: %s', err)
        return version, str(err)

    return version + 1, ''


@callback(
    Output('true-prob-input', 'value'),
    Output('true-prob-slider', 'value'),
    Input('true-prob-input', 'value'),
    Input('true-prob-slider', 'value'),
    prevent_initial_call=True
)
def sync_prob_controls(input_value, slider_value):
    """Sync slider and text input without circular dependency."""
    triggered_id = ctx.triggered_id
    if triggered_id == 'true-prob-slider':
        # Slider changed - update the text input
        return str(slider_value), slider_value
    else:
        # Text input changed - update the slider
        try:
            val = float(input_value)
            val = max(0, min(1, val))
            return input_value, val
        except (ValueError, TypeError):
            return input_value, 0.5


@callback(
    Output('flip-store', 'data'),
    Input('flip-1', 'n_clicks'),
    Input('flip-10', 'n_clicks'),
    Input('flip-100', 'n_clicks'),
    State('true-prob-input', 'value'),
    State('flip-store', 'data'),
    prevent_initial_call=True
)
def flip_coins(n1, n10, n100, true_prob, version):
    n_flips = {'flip-1': 1, 'flip-10': 10, 'flip-100': 100}[ctx.triggered_id]
    true_prob_val = max(0.0, min(1.0, safe_float(true_prob, 0.5)))
    state.flip(n_flips, true_prob_val)
    return version + 1


@callback(
    Output('config-store', 'data'),
    Output('config-error', 'children'),
    Input('mode', 'value'),
    Input('step-size', 'value'),
    Input('initial-guess', 'value'),
    Input('sample-count', 'value'),
    Input('chain-reset-btn', 'n_clicks'),
    State('config-store', 'data'),
    prevent_initial_call=True
)
def configure_sampler(mode, step_size, initial_guess, sample_count, chain_resets, version):
    engine = state.engine
    if ctx.triggered_id == 'chain-reset-btn':
        engine.reset_chain()
        return version + 1, ''

    try:
        engine.configure(step_size=step_size,
                         initial_guess=safe_float(initial_guess, float('nan')),
                         sample_count=sample_count)
        engine.set_mode(mode)
    except ValueError as err:
        logger.warning('Rejected sampler settings: %s', err)
        return version, str(err)
    return version + 1, ''


@callback(
    Output('auto-store', 'data'),
    Output('auto-btn', 'children'),
    Input('auto-btn', 'n_clicks'),
    State('auto-store', 'data'),
    prevent_initial_call=True
)
def toggle_auto(n_clicks, running):
    running = not running and state.engine.has_prior
    return running, 'Auto ■' if running else 'Auto ▶'


@callback(
    Output('tick', 'disabled'),
    Input('auto-store', 'data'),
    Input('mode', 'value'),
)
def enable_ticks(auto, mode):
    return not (auto or mode == MODE_INCREMENTAL)


@callback(
    Output('tick-store', 'data'),
    Input('tick', 'n_intervals'),
    State('auto-store', 'data'),
    State('true-prob-input', 'value'),
    prevent_initial_call=True
)
def on_tick(n_intervals, auto, true_prob):
    if auto:
        state.flip(1, max(0.0, min(1.0, safe_float(true_prob, 0.5))))
    if state.engine.mode == MODE_INCREMENTAL:
        state.engine.advance_chain(STEPS_PER_TICK)
    return n_intervals


def make_belief_figure(true_prob):
    engine = state.engine
    fig = go.Figure()

    if engine.has_prior:
        df = belief_frame(engine)

        fig.add_trace(go.Scatter(
            x=df['pi'], y=df['prior'], mode='lines', name='Prior', fill='tozeroy',
            line=dict(color='rgba(30, 100, 220, 0.7)', width=2),
            fillcolor='rgba(30, 100, 220, 0.25)'
        ))

        histogram = 'metropolis' if 'metropolis' in df else 'chain' if 'chain' in df else None
        if histogram is not None:
            fig.add_trace(go.Bar(
                x=df['pi'], y=df[histogram], name='Metropolis',
                marker=dict(color='rgba(46, 204, 113, 0.5)'), width=1.0 / engine.domain.n
            ))

        if engine.counts.total > 0:
            fig.add_trace(go.Scatter(
                x=df['pi'], y=df['posterior'], mode='lines', name='Posterior',
                line=dict(color='rgba(200, 30, 30, 0.9)', width=2.5)
            ))

        trail = list(engine.chain.state.trail)
        if trail:
            ymax = float(df.drop(columns='pi').max().max())
            ys = np.linspace(0.05 * ymax, 0.95 * ymax, len(trail))
            fig.add_trace(go.Scatter(
                x=trail, y=ys, mode='lines+markers', name='Chain trail',
                line=dict(color='rgba(142, 68, 173, 0.4)', width=1),
                marker=dict(size=4, color='#8e44ad')
            ))

    fig.add_vline(x=true_prob, line=dict(color='#27ae60', width=2, dash='dash'),
                  annotation_text=f'true p = {true_prob:.2f}')

    counts = engine.counts
    fig.update_layout(
        title=f'Flips: {counts.total}   H: {counts.heads}   T: {counts.tails}',
        xaxis_title='π (probability of heads)',
        yaxis_title='Density',
        xaxis=dict(range=[0, 1]),
        bargap=0,
        template='plotly_white',
        legend=dict(orientation='h', yanchor='bottom', y=1.02, xanchor='right', x=1),
        margin=dict(l=60, r=20, t=60, b=40)
    )
    return fig


@callback(
    Output('belief-plot', 'figure'),
    Output('stats-plot', 'figure'),
    Output('current-stats', 'children'),
    Input('prior-store', 'data'),
    Input('flip-store', 'data'),
    Input('config-store', 'data'),
    Input('tick-store', 'data'),
    Input('true-prob-input', 'value'),
)
def update_plots(prior_data, flip_data, config_data, tick_data, true_prob):
    engine = state.engine
    true_prob_val = max(0.0, min(1.0, safe_float(true_prob, 0.5)))

    fig_beliefs = make_belief_figure(true_prob_val)

    # Stats plot
    df_stats = state.get_dataframe()
    fig_stats = go.Figure()

    if df_stats is not None and len(df_stats) > 0:
        fig_stats.add_trace(go.Scatter(
            x=df_stats['Flips'],
            y=df_stats['Mean'],
            mode='lines',
            name='Posterior Mean',
            line=dict(color='#9b59b6', width=2)
        ))

        # Add confidence band (mean +/- std)
        fig_stats.add_trace(go.Scatter(
            x=list(df_stats['Flips']) + list(df_stats['Flips'])[::-1],
            y=list(df_stats['Mean'] + df_stats['Std']) + list(df_stats['Mean'] - df_stats['Std'])[::-1],
            fill='toself',
            fillcolor='rgba(155, 89, 182, 0.2)',
            line=dict(color='rgba(255,255,255,0)'),
            name='Mean +/- Std',
            showlegend=True
        ))

        fig_stats.add_trace(go.Scatter(
            x=df_stats['Flips'],
            y=df_stats['true_prob'],
            mode='lines',
            name='True Probability',
            line=dict(color='#e67e22', width=2, dash='dash')
        ))

    fig_stats.update_layout(
        title='Posterior Statistics',
        xaxis_title='Flips',
        yaxis_title='Probability',
        yaxis=dict(range=[0, 1]),
        template='plotly_white',
        legend=dict(orientation='h', yanchor='bottom', y=1.02, xanchor='right', x=1),
        margin=dict(l=60, r=20, t=60, b=40)
    )

    # Current stats display
    if engine.has_prior:
        mean, std, mode = engine.stats('posterior')
        lines = [
            html.H4("Current State", style={'color': '#2c3e50', 'marginBottom': '10px'}),
            html.P(f"Posterior mean: {mean:.4f}"),
            html.P(f"Posterior std: {std:.4f}"),
            html.P(f"Posterior mode: {mode:.4f}"),
        ]
        if engine.grid.degenerate:
            lines.append(html.P("Posterior update skipped (degenerate normalization)",
                                style={'color': '#c0392b'}))
        if engine.mode == MODE_BATCH and engine.batch.acceptance_rate is not None:
            lines += [html.Hr(), html.P(f"Acceptance rate: {engine.batch.acceptance_rate:.3f}")]
        if engine.mode == MODE_INCREMENTAL and engine.chain.is_warm:
            chain = engine.chain.state
            lines += [
                html.Hr(),
                html.P(f"Chain steps: {chain.steps}"),
                html.P(f"Chain position: {chain.position:.4f}"),
                html.P(f"Acceptance rate: {chain.acceptance_rate:.3f}"),
            ]
        stats_display = html.Div(lines)
    else:
        stats_display = html.Div([
            html.P("Set or draw a prior, then flip some coins.",
                   style={'fontStyle': 'italic', 'color': '#7f8c8d'})
        ])

    return fig_beliefs, fig_stats, stats_display


if __name__ == '__main__':
    setup_logging(LOG_LEVEL)
    logger.info("Starting %s...", APP_NAME)
    logger.info("Open http://%s:%d in your browser", HOST, PORT)
    app.run(debug=True, host=HOST, port=PORT)
